"""
Structural transforms.

Each transform takes a stream, the raw instance params and a TransformContext
and returns a new stream. Inputs are never mutated. Positions below are list
positions after earlier drops; a frame's `index` is never renumbered, so
predicted frames may keep pointing at excised I-frames.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from dmosh.mosh_graph.models import (
    ClassicDatamoshParams,
    DropIntraFramesParams,
    DropPredictedFramesParams,
    FreezeReferenceFrameParams,
    HoldReferenceFrameParams,
)
from dmosh.pipeline.models import STUB_KINDS, MappedKind
from dmosh.structural_stream.models import FrameType, StructuralStream
from dmosh.structural_stream.service import round_half_up

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)


@dataclass
class TransformContext:
    rng: random.Random
    fps: Optional[float] = None


StructuralTransform = Callable[[StructuralStream, Mapping[str, Any], TransformContext], StructuralStream]


def _parse(model: Type[P], params: Mapping[str, Any]) -> Optional[P]:
    try:
        return model.model_validate(dict(params or {}))
    except ValidationError as exc:
        logger.debug("Ignoring %s with malformed params: %s", model.__name__, exc)
        return None


def _roll_drop(rng: random.Random, probability: float) -> bool:
    return rng.random() * 100 < probability


def identity(stream: StructuralStream, params: Mapping[str, Any], ctx: TransformContext) -> StructuralStream:
    return stream


def drop_intra_frames(stream: StructuralStream, params: Mapping[str, Any], ctx: TransformContext) -> StructuralStream:
    p = _parse(DropIntraFramesParams, params)
    if p is None:
        return stream

    result = []
    first_intra_seen = False
    for frame in stream:
        if frame.frame_type != FrameType.I:
            result.append(frame)
            continue
        if p.first_intra_only:
            if first_intra_seen:
                result.append(frame)
                continue
            first_intra_seen = True
        if _roll_drop(ctx.rng, p.probability):
            continue
        result.append(frame)
    return result


def drop_predicted_frames(stream: StructuralStream, params: Mapping[str, Any], ctx: TransformContext) -> StructuralStream:
    p = _parse(DropPredictedFramesParams, params)
    if p is None:
        return stream

    targets = {FrameType(t) for t in p.target_types}
    return [
        frame
        for frame in stream
        if frame.frame_type not in targets or not _roll_drop(ctx.rng, p.probability)
    ]


def _select_reference_position(stream: StructuralStream, p: HoldReferenceFrameParams) -> Optional[int]:
    if not stream:
        return None
    if p.mode == "FirstIntra":
        for pos, frame in enumerate(stream):
            if frame.frame_type == FrameType.I:
                return pos
        return None
    if p.mode == "LastIntra":
        for pos in range(len(stream) - 1, -1, -1):
            if stream[pos].frame_type == FrameType.I:
                return pos
        return None
    if p.specific_frame_index is None:
        return None
    return max(0, min(len(stream) - 1, p.specific_frame_index))


def _hold_duration(stream: StructuralStream, ref_pos: int, p: HoldReferenceFrameParams, fps: Optional[float]) -> int:
    if p.duration_mode == "UntilNextIntra":
        for offset, frame in enumerate(stream[ref_pos + 1:]):
            if frame.frame_type == FrameType.I:
                return offset
        return len(stream) - (ref_pos + 1)
    if p.duration_mode == "FixedFrames":
        return max(0, p.fixed_frames or 0)
    if p.fixed_seconds is None or not fps:
        return 0
    frames = p.fixed_seconds * fps
    if math.isnan(frames) or frames <= 0:
        return 0
    if math.isinf(frames):
        return len(stream)
    return round_half_up(frames)


def hold_reference_frame(stream: StructuralStream, params: Mapping[str, Any], ctx: TransformContext) -> StructuralStream:
    """Hold one frame's content across the run that follows it; types stay."""
    p = _parse(HoldReferenceFrameParams, params)
    if p is None:
        return stream

    ref_pos = _select_reference_position(stream, p)
    if ref_pos is None:
        return stream
    duration = _hold_duration(stream, ref_pos, p, ctx.fps)
    if duration <= 0:
        return stream

    reference = stream[ref_pos]
    held_from = reference.content_source
    start = ref_pos + 1
    end = min(len(stream), start + duration)

    result = list(stream)
    for pos in range(start, end):
        result[pos] = result[pos].model_copy(
            update={
                "content_from": held_from,
                "held_from": held_from,
                "reference_indices": [reference.index],
            }
        )
    return result


def classic_datamosh(stream: StructuralStream, params: Mapping[str, Any], ctx: TransformContext) -> StructuralStream:
    """
    Glued reference: keep the first I-frame, drop every other I-frame and
    point all remaining predicted frames at the first I-frame's content.
    """
    p = _parse(ClassicDatamoshParams, params)
    if p is None or not p.enabled:
        return stream

    first_pos = next((pos for pos, f in enumerate(stream) if f.frame_type == FrameType.I), None)
    if first_pos is None:
        return stream

    first = stream[first_pos]
    held_from = first.content_source
    result = []
    for pos, frame in enumerate(stream):
        if pos == first_pos:
            result.append(frame.model_copy(update={"content_from": held_from}))
        elif frame.frame_type == FrameType.I:
            continue
        else:
            result.append(
                frame.model_copy(
                    update={
                        "content_from": held_from,
                        "held_from": held_from,
                        "reference_indices": [first.index],
                    }
                )
            )
    return result


def freeze_reference_frame(stream: StructuralStream, params: Mapping[str, Any], ctx: TransformContext) -> StructuralStream:
    p = _parse(FreezeReferenceFrameParams, params)
    if p is None:
        return stream

    ref_index = p.reference_index
    if ref_index is None:
        ref_index = next((f.index for f in stream if f.frame_type == FrameType.I), 0)
    return [
        frame if frame.frame_type == FrameType.I
        else frame.model_copy(update={"reference_indices": [ref_index]})
        for frame in stream
    ]


TRANSFORM_TABLE: Dict[MappedKind, StructuralTransform] = {
    MappedKind.DropIntraFrames: drop_intra_frames,
    MappedKind.DropPredictedFrames: drop_predicted_frames,
    MappedKind.HoldReferenceFrame: hold_reference_frame,
    MappedKind.ClassicDatamosh: classic_datamosh,
    MappedKind.FreezeReferenceFrame: freeze_reference_frame,
    MappedKind.Inert: identity,
    **{kind: identity for kind in STUB_KINDS},
}

_missing = set(MappedKind) - set(TRANSFORM_TABLE)
if _missing:
    raise RuntimeError(f"Transform table missing kinds: {sorted(k.value for k in _missing)}")
