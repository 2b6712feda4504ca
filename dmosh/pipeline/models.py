"""
Execution Pipeline Models.

The resolved, execution-ready form of the scoped graphs: a global bypass
flag plus one operation chain per scope.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from dmosh.mosh_graph.models import ScopeKind


class MappedKind(str, Enum):
    """Operation kinds understood by the structural transform engine."""
    DropIntraFrames = "DropIntraFrames"
    DropPredictedFrames = "DropPredictedFrames"
    HoldReferenceFrame = "HoldReferenceFrame"
    ClassicDatamosh = "ClassicDatamosh"
    FreezeReferenceFrame = "FreezeReferenceFrame"
    # Declared stubs: selectable, structurally inert
    ClampMotionVectors = "ClampMotionVectors"
    PerturbMotionVectors = "PerturbMotionVectors"
    QuantizerBias = "QuantizerBias"
    ReferenceChainRandomize = "ReferenceChainRandomize"
    ReferenceChainTruncate = "ReferenceChainTruncate"
    SpatialCoherenceScramble = "SpatialCoherenceScramble"
    GopTopologyRewrite = "GopTopologyRewrite"
    VisualizeQuantizationNoise = "VisualizeQuantizationNoise"
    # Placeholder for node kinds this engine does not know
    Inert = "Inert"


STUB_KINDS = frozenset(
    {
        MappedKind.ClampMotionVectors,
        MappedKind.PerturbMotionVectors,
        MappedKind.QuantizerBias,
        MappedKind.ReferenceChainRandomize,
        MappedKind.ReferenceChainTruncate,
        MappedKind.SpatialCoherenceScramble,
        MappedKind.GopTopologyRewrite,
        MappedKind.VisualizeQuantizationNoise,
    }
)


class OperationInstance(BaseModel):
    id: str
    kind: MappedKind
    enabled: bool = True
    params: Dict[str, Any] = Field(default_factory=dict)


class ScopePipeline(BaseModel):
    scope: ScopeKind
    scope_key: Optional[str] = None
    chain: List[OperationInstance] = Field(default_factory=list)


class Pipeline(BaseModel):
    global_bypass: bool = False
    scopes: List[ScopePipeline] = Field(default_factory=list)
