from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class FrameType(str, Enum):
    I = "I"
    P = "P"
    B = "B"


class StructuralFrame(BaseModel):
    """
    One synthetic frame-type marker.
    content_from/held_from are hold bookkeeping; None means the frame shows
    its own content.
    """
    index: int
    frame_type: FrameType
    reference_indices: List[int] = Field(default_factory=list)
    is_keyframe: bool = False
    content_from: Optional[int] = None
    held_from: Optional[int] = None

    @property
    def content_source(self) -> int:
        return self.index if self.content_from is None else self.content_from


StructuralStream = List[StructuralFrame]
