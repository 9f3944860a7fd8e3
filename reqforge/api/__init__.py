"""API routes."""

from .projects import router as projects_router
from .sections import router as sections_router
from .versions import router as versions_router
from .patches import router as patches_router

__all__ = [
    "projects_router",
    "sections_router",
    "versions_router",
    "patches_router",
]
