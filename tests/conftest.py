"""Shared test fixtures for the ReqForge test suite.

Tests run against a SQLite database in a temporary directory. Tables are
created once when the app is imported; each test starts from empty tables.
Generation adapters are replaced with in-process fakes so no model is
ever called.
"""

import os
import tempfile

# Point the app at a throwaway database before any app imports.
_TMP_DIR = tempfile.mkdtemp(prefix="reqforge-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_FORMAT"] = "text"
os.environ["LLM_MODEL"] = ""

import pytest
from fastapi.testclient import TestClient

from reqforge.api.deps import (
    get_outline_adapter,
    get_section_content_adapter,
    get_suggestion_adapter,
)
from reqforge.core.circuit_breaker import reset_all
from reqforge.database import Base, SessionLocal, get_db
from reqforge.exceptions import GenerationFailedError
from reqforge.main import app
from reqforge.middleware.request_context import rate_limiter
from reqforge.schemas.outline import OutlineSection, OutlineSubsection, OutlineTree
from reqforge.services.generation import Suggestion


@pytest.fixture(autouse=True)
def _clean_tables():
    """Delete all rows before each test, children first."""
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    reset_all()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


# ---------------------------------------------------------------------------
# Fake adapters
# ---------------------------------------------------------------------------


class FakeSuggestionAdapter:
    """Returns a fixed replacement, or raises when ``error`` is set."""

    def __init__(self, suggestion_text="Earth", explanation="Replaced as asked", confidence=0.9, error=None):
        self.suggestion_text = suggestion_text
        self.explanation = explanation
        self.confidence = confidence
        self.error = error
        self.calls = []

    async def suggest(self, selected_text, instruction, full_content):
        self.calls.append((selected_text, instruction, full_content))
        if self.error is not None:
            raise self.error
        return Suggestion(
            suggestion_text=self.suggestion_text,
            explanation=self.explanation,
            confidence=self.confidence,
        )


class FakeSectionContentAdapter:
    def __init__(self, content="Generated section text.", error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def generate(self, section_title, subsection_title, qa_pairs):
        self.calls.append((section_title, subsection_title, list(qa_pairs)))
        if self.error is not None:
            raise self.error
        return self.content


class FakeOutlineAdapter:
    def __init__(self, tree=None, error=None):
        self.tree = tree
        self.error = error
        self.calls = []

    async def generate(self, project_description):
        self.calls.append(project_description)
        if self.error is not None:
            raise self.error
        return self.tree or make_outline()


def generation_failure(adapter="suggestion"):
    return GenerationFailedError("Generation service error, please try again", adapter=adapter)


@pytest.fixture()
def suggestion_adapter():
    return FakeSuggestionAdapter()


@pytest.fixture()
def section_adapter():
    return FakeSectionContentAdapter()


@pytest.fixture()
def outline_adapter():
    return FakeOutlineAdapter()


@pytest.fixture()
def client(db, suggestion_adapter, section_adapter, outline_adapter):
    """TestClient sharing the test session, with fake generation adapters."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_suggestion_adapter] = lambda: suggestion_adapter
    app.dependency_overrides[get_section_content_adapter] = lambda: section_adapter
    app.dependency_overrides[get_outline_adapter] = lambda: outline_adapter
    rate_limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_outline(sections=2, leaves_per_section=2, questions=1) -> OutlineTree:
    """Outline with ids '1', '1.1', '1.2', '2', '2.1', ... and numbered questions."""
    return OutlineTree(sections=[
        OutlineSection(
            id=str(s),
            title=f"Section {s}",
            order=s,
            subsections=[
                OutlineSubsection(
                    id=f"{s}.{l}",
                    title=f"Subsection {s}.{l}",
                    order=l,
                    questions=[f"Question {q} for {s}.{l}?" for q in range(1, questions + 1)],
                )
                for l in range(1, leaves_per_section + 1)
            ],
        )
        for s in range(1, sections + 1)
    ])


def make_project(title: str = "Inventory Tracker", description: str = "Tracks stock levels.", **overrides) -> dict:
    """Factory for project creation payloads."""
    payload = {"title": title, "description": description}
    payload.update(overrides)
    return payload
