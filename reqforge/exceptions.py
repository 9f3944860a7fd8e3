"""ReqForge error types.

Every error carries a machine-readable code and the HTTP status the API
answers with; ``middleware.exception_handler`` turns them into
``{"error", "message", "details"}`` bodies.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    OUTLINE_NOT_FOUND = "OUTLINE_NOT_FOUND"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    OUT_OF_RANGE_SELECTION = "OUT_OF_RANGE_SELECTION"

    GENERATION_FAILED = "GENERATION_FAILED"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"
    CHAIN_INTEGRITY = "CHAIN_INTEGRITY"

    # Emitted by the request middleware, not raised.
    RATE_LIMITED = "RATE_LIMITED"


class ReqForgeError(Exception):
    """Base class. Subclasses pin ``error_code`` and ``status_code``."""

    error_code: ErrorCode
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class ProjectNotFoundError(ReqForgeError):
    error_code = ErrorCode.PROJECT_NOT_FOUND
    status_code = 404

    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}", {"project_id": project_id})


class VersionNotFoundError(ReqForgeError):
    """Version number outside the project's chain."""

    error_code = ErrorCode.VERSION_NOT_FOUND
    status_code = 404

    def __init__(self, project_id: str, number: int):
        super().__init__(
            f"Version {number} not found for project {project_id}",
            {"project_id": project_id, "number": number},
        )


class OutlineNotFoundError(ReqForgeError):
    error_code = ErrorCode.OUTLINE_NOT_FOUND
    status_code = 404

    def __init__(self, project_id: str):
        super().__init__(f"No outline registered for project: {project_id}", {"project_id": project_id})


class ValidationError(ReqForgeError):
    """Rejected input. ``field`` names the offending request field when there is one."""

    error_code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, **extra: Any):
        details: Dict[str, Any] = {"field": field} if field else {}
        details.update(extra)
        super().__init__(message, details)


class OutOfRangeSelectionError(ReqForgeError):
    """Patch offsets fall outside the content they target."""

    error_code = ErrorCode.OUT_OF_RANGE_SELECTION
    status_code = 422

    def __init__(self, start: int, end: int, content_length: int):
        super().__init__(
            f"Selection [{start}, {end}) is outside content of length {content_length}",
            {"start": start, "end": end, "content_length": content_length},
        )


class GenerationFailedError(ReqForgeError):
    """A generation adapter failed. Nothing was written, so a retry is safe."""

    error_code = ErrorCode.GENERATION_FAILED
    status_code = 502

    def __init__(self, message: str, adapter: str, original_error: Optional[Exception] = None):
        details: Dict[str, Any] = {"adapter": adapter, "retryable": True}
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(message, details)


class ConcurrencyConflictError(ReqForgeError):
    """Another writer changed the project first. Reload and retry."""

    error_code = ErrorCode.CONCURRENCY_CONFLICT
    status_code = 409

    def __init__(self, project_id: str, message: str = "Project was modified by a concurrent writer", **extra: Any):
        details: Dict[str, Any] = {"project_id": project_id}
        details.update(extra)
        super().__init__(message, details)


class StaleSelectionError(ConcurrencyConflictError):
    """The span at the patch offset no longer holds the selected text."""

    def __init__(self, selection_start: int, expected: str, found: str, project_id: str = ""):
        super().__init__(
            project_id,
            message="Selected text changed since the suggestion was requested; reload and retry",
            selection_start=selection_start,
            expected=expected,
            found=found,
        )


class ChainIntegrityError(ReqForgeError):
    """Stored version chain violates its invariants. Never repaired automatically."""

    error_code = ErrorCode.CHAIN_INTEGRITY

    def __init__(self, project_id: str, message: str):
        super().__init__(
            f"Version chain for {project_id} is corrupt: {message}",
            {"project_id": project_id},
        )
