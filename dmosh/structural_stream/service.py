"""
Structural Stream Builder.

Synthesizes a deterministic pseudo-GOP in place of a decoded bitstream:
an I-frame every round(fps) frames, B on even offsets, P on odd offsets.
"""

from __future__ import annotations

import math

from dmosh.structural_stream.models import FrameType, StructuralFrame, StructuralStream
from dmosh.timeline.models import TimelineClip


def round_half_up(value: float) -> int:
    # builtin round() is banker's rounding; GOP sizes round 2.5 up to 3
    return int(math.floor(value + 0.5))


def frame_type_for_index(index: int, fps: float) -> FrameType:
    if index == 0:
        return FrameType.I
    if fps <= 0:
        return FrameType.P
    if not math.isfinite(fps):
        # unbounded GOP: frame 0 is the only I-frame
        return FrameType.B if index % 2 == 0 else FrameType.P
    gop = max(1, round_half_up(max(1.0, fps)))
    if index % gop == 0:
        return FrameType.I
    return FrameType.B if index % 2 == 0 else FrameType.P


def build_structural_stream(duration_frames: float, fps: float) -> StructuralStream:
    """Non-I frames reference the most recent preceding I-frame."""
    if not math.isfinite(duration_frames) or duration_frames <= 0:
        return []
    length = int(math.floor(duration_frames))
    stream: StructuralStream = []
    last_intra = 0
    for idx in range(length):
        frame_type = frame_type_for_index(idx, fps)
        if frame_type == FrameType.I:
            last_intra = idx
        stream.append(
            StructuralFrame(
                index=idx,
                frame_type=frame_type,
                reference_indices=[] if frame_type == FrameType.I else [last_intra],
                is_keyframe=frame_type == FrameType.I,
            )
        )
    return stream


def build_structural_stream_for_clip(clip: TimelineClip, fps: float) -> StructuralStream:
    return build_structural_stream(clip.duration_frames, fps)
