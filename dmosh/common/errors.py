"""Typed errors raised at the analyze/render boundary."""
from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional, Sequence, Union


class EngineErrorCode(str, Enum):
    NORMALIZATION_FAILED = "NORMALIZATION_FAILED"
    INVALID_PROJECT = "INVALID_PROJECT"
    RENDER_FAILED = "RENDER_FAILED"
    EXPORT_FAILED = "EXPORT_FAILED"
    SOURCE_MISSING = "SOURCE_MISSING"


class EngineError(Exception):
    """Raised when the engine refuses or fails to analyze/render a project."""

    def __init__(self, code: EngineErrorCode, message: str, details: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {"code": self.code.value, "message": self.message, "details": self.details}


class ProjectValidationError(ValueError):
    """Hard-stop form of a failed project validation."""

    def __init__(self, message: str, errors: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.errors: List[str] = list(errors or [])


def to_engine_error(code: EngineErrorCode, details: Union[str, Sequence[str]]) -> EngineError:
    if isinstance(details, str):
        return EngineError(code, details, details)
    items = list(details)
    return EngineError(code, "; ".join(items), items)
