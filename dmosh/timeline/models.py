"""
Timeline Models.

Tracks, clips and frame ranges of the edit. Frame numbers are plain ints;
ordering problems (start > end) are reported by the validator, not rejected
at parse time, so a half-edited project can still be loaded.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from dmosh.config.runtime_config import get_default_timeline_id


class TimelineRange(BaseModel):
    start_frame: int
    end_frame: int


class TimelineTrack(BaseModel):
    id: str
    kind: Literal["video"] = "video"
    name: Optional[str] = None
    index: int = 0


class TimelineClip(BaseModel):
    id: str
    track_id: str
    source_id: str
    start_frame: int
    end_frame: int
    timeline_start_frame: int = 0

    @property
    def duration_frames(self) -> int:
        return max(0, self.end_frame - self.start_frame)


class Timeline(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    id: str = Field(default_factory=get_default_timeline_id)
    fps: float = 30.0
    width: int = 1920
    height: int = 1080
    tracks: List[TimelineTrack] = Field(default_factory=list)
    clips: List[TimelineClip] = Field(default_factory=list)

    def find_clip(self, clip_id: str) -> Optional[TimelineClip]:
        for clip in self.clips:
            if clip.id == clip_id:
                return clip
        return None
