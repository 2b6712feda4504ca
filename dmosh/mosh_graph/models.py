"""
Mosh Graph Models.

Scoped operation graphs: every graph targets one scope (timeline, track or
clip) and holds an ordered list of operation nodes. Graphs live in a
GraphStore keyed by the canonical scope key.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, Field, field_validator, model_validator


class ScopeKind(str, Enum):
    """Targeting level of a graph."""
    TIMELINE = "timeline"
    TRACK = "track"
    CLIP = "clip"


class NodeKind(str, Enum):
    """Operation kinds the editor palette offers."""
    DropIntraFrames = "DropIntraFrames"
    DropPredictedFrames = "DropPredictedFrames"
    HoldReferenceFrame = "HoldReferenceFrame"
    ClassicDatamosh = "ClassicDatamosh"
    FreezeReferenceFrame = "FreezeReferenceFrame"
    # Reserved, pass-through in the structural engine
    ClampLongMotionVectors = "ClampLongMotionVectors"
    PerturbMotionVectors = "PerturbMotionVectors"
    QuantizeResiduals = "QuantizeResiduals"
    VisualizeQuantizationNoise = "VisualizeQuantizationNoise"


class ScopeId(BaseModel):
    """
    Identifies a targeting level.
    Track scopes need a track_id; clip scopes need track_id and clip_id.
    """
    kind: ScopeKind
    timeline_id: str
    track_id: Optional[str] = None
    clip_id: Optional[str] = None

    @model_validator(mode="after")
    def validate_targets(self):
        if self.kind in (ScopeKind.TRACK, ScopeKind.CLIP) and not self.track_id:
            raise ValueError(f"{self.kind.value} scope requires track_id")
        if self.kind == ScopeKind.CLIP and not self.clip_id:
            raise ValueError("clip scope requires clip_id")
        return self

    def canonical_key(self) -> str:
        parts = [self.kind.value, self.timeline_id, self.track_id or "", self.clip_id or ""]
        return "::".join(part for part in parts if part)


# Parameter models per node kind

class DropIntraFramesParams(BaseModel):
    probability: float = 100.0
    first_intra_only: bool = False


class DropPredictedFramesParams(BaseModel):
    target_types: List[Literal["P", "B"]] = Field(default_factory=lambda: ["P"])
    probability: float = 100.0


class HoldReferenceFrameParams(BaseModel):
    mode: Literal["FirstIntra", "LastIntra", "SpecificFrameIndex"] = "FirstIntra"
    specific_frame_index: Optional[int] = None
    duration_mode: Literal["UntilNextIntra", "FixedFrames", "FixedSeconds"] = "UntilNextIntra"
    fixed_frames: Optional[int] = None
    fixed_seconds: Optional[float] = None


class ClassicDatamoshParams(BaseModel):
    enabled: bool = True


class FreezeReferenceFrameParams(BaseModel):
    reference_index: Optional[int] = None


NODE_PARAM_MODELS: Dict[str, Type[BaseModel]] = {
    NodeKind.DropIntraFrames.value: DropIntraFramesParams,
    NodeKind.DropPredictedFrames.value: DropPredictedFramesParams,
    NodeKind.HoldReferenceFrame.value: HoldReferenceFrameParams,
    NodeKind.ClassicDatamosh.value: ClassicDatamoshParams,
    NodeKind.FreezeReferenceFrame.value: FreezeReferenceFrameParams,
}


class OperationNode(BaseModel):
    """
    A single operation instance within a scope.
    `kind` is kept as a plain string so experimental kinds round-trip.
    """
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    kind: str
    bypass: bool = False
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("kind", mode="before")
    @classmethod
    def coerce_kind(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        return value

    @property
    def is_known_kind(self) -> bool:
        return self.kind in NodeKind._value2member_map_


class OperationGraph(BaseModel):
    scope: ScopeId
    nodes: List[OperationNode] = Field(default_factory=list)


class GraphStore(BaseModel):
    """Canonical scope key -> graph, plus the global bypass switch."""
    graphs: Dict[str, OperationGraph] = Field(default_factory=dict)
    global_bypass: bool = False


def create_empty_graph(scope: ScopeId) -> OperationGraph:
    return OperationGraph(scope=scope, nodes=[])


def create_default_node(kind: str) -> OperationNode:
    """Build a node with the palette defaults for its kind."""
    kind_value = kind.value if isinstance(kind, Enum) else kind
    params_model = NODE_PARAM_MODELS.get(kind_value)
    params = params_model().model_dump() if params_model else {}
    return OperationNode(
        id=f"{kind_value}-{uuid.uuid4().hex}",
        kind=kind_value,
        bypass=False,
        params=params,
    )
