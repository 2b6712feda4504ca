"""
Flat Operation Models.

Per-timeline-range editing operations, stored as five ordered lists keyed by
kind. OPERATION_PRIORITY is the composition order, not a timestamp.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from dmosh.timeline.models import TimelineRange


class DropKeyframesPattern(BaseModel):
    every_nth: Optional[int] = None
    offsets: Optional[List[int]] = None


class DropKeyframesOp(BaseModel):
    id: str
    type: Literal["DropKeyframes"] = "DropKeyframes"
    timeline_range: TimelineRange
    clip_id: Optional[str] = None
    pattern: Optional[DropKeyframesPattern] = None


class FreezeReferenceOp(BaseModel):
    id: str
    type: Literal["FreezeReference"] = "FreezeReference"
    source_id: Optional[str] = None
    clip_id: Optional[str] = None
    anchor_frame: int
    target_range: TimelineRange


class RedirectAnchor(BaseModel):
    clip_id: str
    anchor_frame: int


class RedirectFramesOp(BaseModel):
    id: str
    type: Literal["RedirectFrames"] = "RedirectFrames"
    from_range: TimelineRange
    to_anchor: RedirectAnchor


class HoldSmearOp(BaseModel):
    id: str
    type: Literal["HoldSmear"] = "HoldSmear"
    anchor_frame: int
    range: TimelineRange
    clip_id: Optional[str] = None
    mask_id: Optional[str] = None


class MotionVectorParams(BaseModel):
    scale_curve_id: Optional[str] = None
    jitter_curve_id: Optional[str] = None
    quantize_curve_id: Optional[str] = None
    drift_x_curve_id: Optional[str] = None
    drift_y_curve_id: Optional[str] = None


class MotionVectorTransformOp(BaseModel):
    id: str
    type: Literal["MotionVectorTransform"] = "MotionVectorTransform"
    timeline_range: TimelineRange
    mask_id: Optional[str] = None
    seed: Optional[int] = None
    params: MotionVectorParams = Field(default_factory=MotionVectorParams)


Operation = Annotated[
    Union[
        DropKeyframesOp,
        FreezeReferenceOp,
        RedirectFramesOp,
        HoldSmearOp,
        MotionVectorTransformOp,
    ],
    Field(discriminator="type"),
]


class FlatOperationSet(BaseModel):
    """
    Five ordered lists of operations. Unknown keys are retained so the
    validator can report them instead of losing them on load.
    """
    model_config = ConfigDict(extra="allow")

    drop_keyframes: List[DropKeyframesOp] = Field(default_factory=list)
    freeze_reference: List[FreezeReferenceOp] = Field(default_factory=list)
    redirect_frames: List[RedirectFramesOp] = Field(default_factory=list)
    hold_smear: List[HoldSmearOp] = Field(default_factory=list)
    motion_vector_transforms: List[MotionVectorTransformOp] = Field(default_factory=list)

    def unknown_kinds(self) -> List[str]:
        return sorted((self.model_extra or {}).keys())


OPERATION_PRIORITY: List[str] = [
    "drop_keyframes",
    "freeze_reference",
    "redirect_frames",
    "hold_smear",
    "motion_vector_transforms",
]
