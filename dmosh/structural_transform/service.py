"""
Structural Transform Engine.

Applies the chains of an execution Pipeline to a StructuralStream. Total:
bypass, missing scopes, disabled instances, stub kinds and malformed params
all pass the stream through unchanged.
"""

from __future__ import annotations

import logging
import random
from typing import Iterable, Optional, Union

from dmosh.config.runtime_config import get_default_seed
from dmosh.mosh_graph.models import ScopeKind
from dmosh.pipeline.adapter import build_pipeline_for_clip
from dmosh.pipeline.models import OperationInstance, Pipeline
from dmosh.project.models import Project
from dmosh.structural_stream.models import StructuralStream
from dmosh.structural_stream.service import build_structural_stream_for_clip
from dmosh.structural_transform.transforms import TRANSFORM_TABLE, TransformContext, identity
from dmosh.timeline.models import TimelineClip

logger = logging.getLogger(__name__)

CLIP_SCOPE_ORDER = (ScopeKind.TIMELINE, ScopeKind.TRACK, ScopeKind.CLIP)


def apply_chain(
    stream: StructuralStream,
    chain: Iterable[OperationInstance],
    ctx: TransformContext,
) -> StructuralStream:
    result = stream
    for instance in chain:
        if not instance.enabled:
            continue
        transform = TRANSFORM_TABLE.get(instance.kind, identity)
        result = transform(result, instance.params, ctx)
    return result


def apply_pipeline(
    stream: StructuralStream,
    pipeline: Optional[Pipeline],
    scope_kind: Union[ScopeKind, str],
    rng: Optional[random.Random] = None,
    fps: Optional[float] = None,
) -> StructuralStream:
    """
    Apply every chain whose scope kind matches, in pipeline order.
    Without an injected rng, a generator seeded from DMOSH_DEFAULT_SEED is
    created for this call only.
    """
    if pipeline is None or pipeline.global_bypass:
        return stream
    try:
        kind = ScopeKind(scope_kind)
    except ValueError:
        logger.debug("Unknown scope kind %r, passing stream through", scope_kind)
        return stream

    chains = [scope.chain for scope in pipeline.scopes if scope.scope == kind and scope.chain]
    if not chains:
        return stream

    ctx = TransformContext(rng=rng or random.Random(get_default_seed()), fps=fps)
    result = stream
    for chain in chains:
        result = apply_chain(result, chain, ctx)
    return result


def apply_pipeline_to_clip(
    project: Project,
    clip: TimelineClip,
    rng: Optional[random.Random] = None,
) -> StructuralStream:
    """Clip stream with the timeline, track and clip chains applied in turn."""
    fps = project.timeline.fps or project.settings.fps
    stream = build_structural_stream_for_clip(clip, fps)
    pipeline = build_pipeline_for_clip(project.mosh_graphs, project.timeline.id, clip)
    generator = rng or random.Random(project.seed)
    for kind in CLIP_SCOPE_ORDER:
        stream = apply_pipeline(stream, pipeline, kind, rng=generator, fps=fps)
    return stream
