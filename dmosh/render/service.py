"""
Render boundary.

Validates a project, resolves its operations and pipeline, and produces the
finalized settings + plan for the external codec engine. This is the only
layer that raises EngineError.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Protocol

from dmosh.common.errors import EngineError, EngineErrorCode, to_engine_error
from dmosh.mosh_graph.models import GraphStore
from dmosh.mosh_graph.service import collect_all_graphs
from dmosh.operations.service import compose_operations
from dmosh.pipeline.adapter import build_pipeline
from dmosh.project.models import Project
from dmosh.render.models import (
    ClipExportSource,
    ClipTopology,
    ContainerFormat,
    DatamoshTimeline,
    EngineProgress,
    RenderPlan,
    RenderResult,
    RenderSettings,
    SourceExportSource,
)
from dmosh.structural_stream.models import FrameType
from dmosh.structural_transform.service import apply_pipeline_to_clip
from dmosh.timeline.models import TimelineClip
from dmosh.validation.service import validate_project

logger = logging.getLogger(__name__)

_MIME_TYPES = {
    ContainerFormat.MOV: "video/quicktime",
    ContainerFormat.WEBM: "video/webm",
    ContainerFormat.MKV: "video/x-matroska",
    ContainerFormat.MP4: "video/mp4",
}


class CodecBackend(Protocol):
    def encode(self, plan: RenderPlan, project: Project) -> bytes:
        ...


def resolve_mime_type(container: ContainerFormat) -> str:
    return _MIME_TYPES.get(container, "video/mp4")


def extract_active_mosh_operations(store: Optional[GraphStore]) -> List[str]:
    return [
        node.kind
        for graph in collect_all_graphs(store)
        for node in graph.nodes
        if not node.bypass
    ]


def apply_mosh_graphs_to_render_settings(project: Project, settings: RenderSettings) -> RenderSettings:
    """
    Same settings object back on global bypass, no graphs, or no active
    nodes; otherwise a copy whose datamosh field lists the active kinds.
    """
    store = project.mosh_graphs
    if store.global_bypass:
        return settings
    if not store.graphs:
        return settings
    operations = extract_active_mosh_operations(store)
    if not operations:
        return settings
    return settings.model_copy(update={"datamosh": DatamoshTimeline(operations=operations)})


def _clips_for_export(project: Project, settings: RenderSettings) -> List[TimelineClip]:
    source = settings.source
    clips = project.timeline.clips
    if isinstance(source, ClipExportSource):
        selected = [clip for clip in clips if clip.id == source.clip_id]
        if not selected:
            raise EngineError(EngineErrorCode.SOURCE_MISSING, f"Clip {source.clip_id} not found", source.clip_id)
        return selected
    if isinstance(source, SourceExportSource):
        if not any(s.id == source.source_id for s in project.sources):
            raise EngineError(EngineErrorCode.SOURCE_MISSING, f"Source {source.source_id} not found", source.source_id)
        return [clip for clip in clips if clip.source_id == source.source_id]
    return list(clips)


class MoshEngine:
    def __init__(self, backend: Optional[CodecBackend] = None) -> None:
        self.backend = backend
        self._progress = EngineProgress()

    def get_progress(self) -> EngineProgress:
        return self._progress.model_copy()

    def _set_progress(self, phase: str, progress: float, message: Optional[str] = None) -> None:
        self._progress = EngineProgress(phase=phase, progress=progress, message=message)

    def analyze(self, project: Project) -> None:
        """Refuse projects that fail validation or carry unusable sources."""
        self._set_progress("analyzing", 0.0)
        try:
            result = validate_project(project)
            if not result.valid:
                logger.warning(
                    "Refusing project %r: %d validation errors",
                    project.metadata.name,
                    len(result.errors),
                )
                raise to_engine_error(EngineErrorCode.INVALID_PROJECT, result.errors)
            failed = [s for s in project.sources if s.normalization_error is not None]
            if failed:
                raise to_engine_error(
                    EngineErrorCode.NORMALIZATION_FAILED,
                    [f"Source {s.id}: {s.normalization_error.message}" for s in failed],
                )
        finally:
            self._set_progress("idle", 1.0)

    def build_render_plan(
        self,
        project: Project,
        settings: RenderSettings,
        rng: Optional[random.Random] = None,
    ) -> RenderPlan:
        self.analyze(project)
        generator = rng or random.Random(project.seed)

        topology = []
        for clip in _clips_for_export(project, settings):
            stream = apply_pipeline_to_clip(project, clip, rng=generator)
            topology.append(
                ClipTopology(
                    clip_id=clip.id,
                    source_frames=clip.duration_frames,
                    frame_count=len(stream),
                    intra_count=sum(1 for f in stream if f.frame_type == FrameType.I),
                    held_count=sum(1 for f in stream if f.held_from is not None),
                    dropped_count=clip.duration_frames - len(stream),
                    frame_types="".join(f.frame_type.value for f in stream),
                )
            )

        plan = RenderPlan(
            project_name=project.metadata.name,
            settings=apply_mosh_graphs_to_render_settings(project, settings),
            effective_operations=compose_operations(project.operations),
            pipeline=build_pipeline(project.mosh_graphs),
            clips=topology,
        )
        logger.info(
            "Render plan for %r: %d effective operations, %d clips",
            plan.project_name,
            len(plan.effective_operations),
            len(plan.clips),
        )
        return plan

    def render(
        self,
        project: Project,
        settings: RenderSettings,
        rng: Optional[random.Random] = None,
    ) -> RenderResult:
        plan = self.build_render_plan(project, settings, rng=rng)
        if self.backend is None:
            raise EngineError(EngineErrorCode.RENDER_FAILED, "No codec backend configured")

        file_name = f"{settings.file_name}.{settings.file_extension or settings.container.value}"
        self._set_progress("rendering", 0.0)
        try:
            payload = self.backend.encode(plan, project)
        except EngineError:
            raise
        except Exception as exc:
            logger.warning("Codec backend failed for %s", file_name, exc_info=exc)
            raise EngineError(EngineErrorCode.RENDER_FAILED, str(exc)) from exc
        finally:
            self._set_progress("idle", 1.0)

        if not payload:
            raise EngineError(EngineErrorCode.EXPORT_FAILED, f"Codec backend returned empty output for {file_name}")
        return RenderResult(
            plan=plan,
            payload=payload,
            mime_type=resolve_mime_type(settings.container),
            file_name=file_name,
        )


_engine: Optional[MoshEngine] = None


def get_mosh_engine() -> MoshEngine:
    global _engine
    if _engine is None:
        _engine = MoshEngine()
    return _engine


def set_mosh_engine(engine: Optional[MoshEngine]) -> None:
    global _engine
    _engine = engine
