from __future__ import annotations

from enum import Enum
from typing import Dict, List, Tuple

from pydantic import BaseModel, Field


class DiagnosticKind(str, Enum):
    VALIDATION = "validation"
    REFERENCE = "reference"  # dangling id reference


class Diagnostic(BaseModel):
    kind: DiagnosticKind = DiagnosticKind.VALIDATION
    message: str


class ValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    diagnostics: List[Diagnostic] = Field(default_factory=list)

    @property
    def reference_errors(self) -> List[str]:
        return [d.message for d in self.diagnostics if d.kind == DiagnosticKind.REFERENCE]


PARAMETER_RANGES: Dict[str, Tuple[float, float]] = {
    "scale": (0.0, 4.0),
    "jitter": (0.0, 1.0),
    "quantize": (0.0, 8.0),
    "drift": (-50.0, 50.0),
}


def range_for_param(param: str) -> Tuple[float, float]:
    if param in ("driftX", "driftY"):
        return PARAMETER_RANGES["drift"]
    return PARAMETER_RANGES.get(param, PARAMETER_RANGES["drift"])
