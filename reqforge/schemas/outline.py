"""Outline schemas.

These describe the shape of an outline on the wire. Semantic checks
(unique ids, non-empty question sets, sibling ordering) happen when the
outline is registered, so they surface as ValidationError rather than a
generic request-validation failure.
"""

from pydantic import BaseModel
from typing import List, Optional


class OutlineSubsection(BaseModel):
    """Leaf node: carries the prompt questions."""
    id: str
    title: str
    order: int
    questions: List[str] = []


class OutlineSection(BaseModel):
    """Top-level node grouping subsections."""
    id: str
    title: str
    order: int
    subsections: List[OutlineSubsection] = []


class OutlineTree(BaseModel):
    """Whole outline as submitted or returned."""
    sections: List[OutlineSection] = []

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "sections": [
                        {
                            "id": "1",
                            "title": "Introduction",
                            "order": 1,
                            "subsections": [
                                {
                                    "id": "1.1",
                                    "title": "Purpose",
                                    "order": 1,
                                    "questions": ["What problem does the system solve?"],
                                }
                            ],
                        }
                    ]
                }
            ]
        }
    }


class OutlineGenerateRequest(BaseModel):
    """Ask the model for an outline; falls back to the project description."""
    project_description: Optional[str] = None


class OutlineResponse(OutlineTree):
    """Registered outline with its leaf count."""
    leaf_count: int
