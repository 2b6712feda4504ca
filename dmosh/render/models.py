"""
Render Models.

Settings handed to the external codec engine, plus the render plan this core
finalizes before handing off.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from dmosh.operations.models import Operation
from dmosh.pipeline.models import Pipeline


class ContainerFormat(str, Enum):
    MP4 = "mp4"
    MOV = "mov"
    MKV = "mkv"
    WEBM = "webm"


class VideoCodec(str, Enum):
    H264 = "h264"
    H265 = "h265"
    VP9 = "vp9"
    AV1 = "av1"
    PRORES_422 = "prores_422"
    PRORES_422_HQ = "prores_422_hq"


class AudioCodec(str, Enum):
    AAC = "aac"
    PCM_S16LE = "pcm_s16le"
    OPUS = "opus"
    NONE = "none"


class PixelFormat(str, Enum):
    YUV420P = "yuv420p"
    YUV422P10LE = "yuv422p10le"
    YUV444P10LE = "yuv444p10le"


class TimelineExportSource(BaseModel):
    kind: Literal["timeline"] = "timeline"
    in_frame: Optional[int] = None
    out_frame: Optional[int] = None


class ClipExportSource(BaseModel):
    kind: Literal["clip"] = "clip"
    clip_id: str


class SourceExportSource(BaseModel):
    kind: Literal["source"] = "source"
    source_id: str


ExportSource = Annotated[
    Union[TimelineExportSource, ClipExportSource, SourceExportSource],
    Field(discriminator="kind"),
]


class CrfRateControl(BaseModel):
    mode: Literal["crf"] = "crf"
    value: int = 20


class BitrateRateControl(BaseModel):
    mode: Literal["bitrate"] = "bitrate"
    kbps: int


RateControl = Annotated[Union[CrfRateControl, BitrateRateControl], Field(discriminator="mode")]


class DatamoshNone(BaseModel):
    mode: Literal["none"] = "none"


class DatamoshTimeline(BaseModel):
    mode: Literal["timeline"] = "timeline"
    operations: List[str] = Field(default_factory=list)


DatamoshSettings = Annotated[Union[DatamoshNone, DatamoshTimeline], Field(discriminator="mode")]

RESOLUTION_SCALES = (1.0, 0.5, 0.25)


class RenderSettings(BaseModel):
    id: str
    project_id: str
    source: ExportSource = Field(default_factory=TimelineExportSource)

    container: ContainerFormat = ContainerFormat.MP4
    video_codec: VideoCodec = VideoCodec.H264
    audio_codec: AudioCodec = AudioCodec.AAC
    output_resolution: Literal["project", "custom"] = "project"
    width: Optional[int] = None
    height: Optional[int] = None
    fps_mode: Literal["project", "override"] = "project"
    fps: Optional[float] = None
    pixel_format: PixelFormat = PixelFormat.YUV420P

    rate_control: RateControl = Field(default_factory=CrfRateControl)
    keyframe_interval: Union[int, Literal["auto"]] = "auto"
    b_frames: Union[int, Literal["auto"]] = "auto"

    include_audio: bool = True
    audio_sample_rate: Literal[44100, 48000] = 48000
    audio_channels: Literal[1, 2] = 2

    datamosh: DatamoshSettings = Field(default_factory=DatamoshNone)
    preserve_broken_gop: bool = True

    burn_in_timecode: bool = False
    burn_in_clip_name: bool = False
    burn_in_masks: bool = False

    render_resolution_scale: float = 1.0
    preview_only: bool = False

    file_name: str = "export"
    file_extension: str = "mp4"

    @field_validator("render_resolution_scale")
    @classmethod
    def validate_scale(cls, value: float) -> float:
        if value not in RESOLUTION_SCALES:
            raise ValueError(f"render_resolution_scale must be one of {RESOLUTION_SCALES}")
        return value


class EngineProgress(BaseModel):
    phase: Literal["idle", "analyzing", "rendering"] = "idle"
    progress: float = 0.0
    message: Optional[str] = None


class ClipTopology(BaseModel):
    """Per-clip summary of the transformed structural stream."""
    clip_id: str
    source_frames: int
    frame_count: int
    intra_count: int
    held_count: int
    dropped_count: int
    frame_types: str


class RenderPlan(BaseModel):
    project_name: str
    settings: RenderSettings
    effective_operations: List[Operation] = Field(default_factory=list)
    pipeline: Pipeline = Field(default_factory=Pipeline)
    clips: List[ClipTopology] = Field(default_factory=list)


class RenderResult(BaseModel):
    plan: RenderPlan
    payload: bytes
    mime_type: str
    file_name: str
