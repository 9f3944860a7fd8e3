"""Generation log schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class GenerationLogResponse(BaseModel):
    id: int
    project_id: Optional[str] = None
    kind: str
    model: Optional[str] = None
    prompt: str
    raw_response: Optional[str] = None
    parsed: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
