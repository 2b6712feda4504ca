"""
Project Models.

The serializable project: sources, timeline, masks, the flat operation set,
the scoped graph store and automation curves. This is the only durable
artifact; structural streams and pipelines are derived on demand.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from dmosh.mosh_graph.models import GraphStore
from dmosh.operations.models import FlatOperationSet
from dmosh.timeline.models import Timeline, TimelineRange

PROJECT_VERSION = "0.1.0"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProjectMetadata(BaseModel):
    name: str
    created_at: str = Field(default_factory=_now_iso)
    updated_at: str = Field(default_factory=_now_iso)
    author: str = ""
    description: Optional[str] = None
    notes: Optional[str] = None


class ProjectSettings(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    width: int = 1920
    height: int = 1080
    fps: float = 30.0
    block_size: int = 16


class NormalizedProfile(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    codec: str
    width: int
    height: int
    fps: float
    has_b_frames: bool = False
    gop_size: Optional[int] = None


class NormalizationError(BaseModel):
    code: str
    message: str


class Source(BaseModel):
    id: str
    original_name: str
    hash: str = ""
    audio_present: bool = False
    pixel_format: str = "yuv420p"
    duration_frames: int = 0
    normalized_profile: Optional[NormalizedProfile] = None
    normalization_error: Optional[NormalizationError] = None
    preview_url: str = ""


class MaskTransform(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0


class MaskKeyframe(BaseModel):
    timeline_frame: int
    transform: MaskTransform


class MaskAppliesTo(BaseModel):
    clip_ids: Optional[List[str]] = None
    timeline_ranges: Optional[List[TimelineRange]] = None


class Mask(BaseModel):
    id: str
    name: Optional[str] = None
    shape: Literal["rect", "ellipse"] = "rect"
    mode: Literal["inside", "outside"] = "inside"
    applies_to: Optional[MaskAppliesTo] = None
    keyframes: List[MaskKeyframe] = Field(default_factory=list)
    interpolation: Literal["linear", "step"] = "linear"


AutomationParam = Literal["scale", "jitter", "quantize", "driftX", "driftY"]


class AutomationTarget(BaseModel):
    kind: Literal["operationParam"] = "operationParam"
    operation_id: str
    param: AutomationParam


class AutomationPoint(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    t: float
    value: float


class AutomationCurve(BaseModel):
    id: str
    name: Optional[str] = None
    target: AutomationTarget
    points: List[AutomationPoint] = Field(default_factory=list)
    interpolation: Literal["linear", "smooth", "step"] = "linear"


class Project(BaseModel):
    version: str = PROJECT_VERSION
    metadata: ProjectMetadata
    seed: int = 0
    settings: ProjectSettings = Field(default_factory=ProjectSettings)
    sources: List[Source] = Field(default_factory=list)
    timeline: Timeline = Field(default_factory=Timeline)
    masks: List[Mask] = Field(default_factory=list)
    operations: FlatOperationSet = Field(default_factory=FlatOperationSet)
    automation_curves: List[AutomationCurve] = Field(default_factory=list)
    mosh_graphs: GraphStore = Field(default_factory=GraphStore)
