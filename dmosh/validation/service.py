"""
Project Validator.

Collects every problem with a project instead of stopping at the first one.
validate_project never raises and never mutates its input; callers that need
a hard stop (render/export) use assert_valid_project.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Set

from pydantic import ValidationError

from dmosh.common.errors import ProjectValidationError
from dmosh.mosh_graph.models import NODE_PARAM_MODELS, GraphStore, HoldReferenceFrameParams
from dmosh.operations.models import DropKeyframesOp, FlatOperationSet, RedirectFramesOp
from dmosh.operations.service import get_operation_list
from dmosh.project.models import AutomationCurve, Project
from dmosh.validation.models import Diagnostic, DiagnosticKind, ValidationResult, range_for_param

logger = logging.getLogger(__name__)


class _Collector:
    def __init__(self) -> None:
        self.diagnostics: List[Diagnostic] = []

    def error(self, message: str) -> None:
        self.diagnostics.append(Diagnostic(kind=DiagnosticKind.VALIDATION, message=message))

    def reference(self, message: str) -> None:
        self.diagnostics.append(Diagnostic(kind=DiagnosticKind.REFERENCE, message=message))

    def result(self) -> ValidationResult:
        errors = [d.message for d in self.diagnostics]
        return ValidationResult(valid=not errors, errors=errors, diagnostics=list(self.diagnostics))


def validate_automation_curve(curve: AutomationCurve, operations: FlatOperationSet) -> List[Diagnostic]:
    out = _Collector()
    operation_ids = {op.id for op in get_operation_list(operations)}
    if curve.target.operation_id not in operation_ids:
        out.reference(f"Unknown operation reference {curve.target.operation_id} for curve {curve.id}")
    low, high = range_for_param(curve.target.param)
    for point in curve.points:
        if not low <= point.value <= high:
            out.error(f"Point {point.value} for curve {curve.id} is out of range for {curve.target.param}")
    return out.diagnostics


def _validate_timeline(project: Project, out: _Collector) -> None:
    track_ids = {track.id for track in project.timeline.tracks}
    source_ids = {source.id for source in project.sources}
    for clip in project.timeline.clips:
        if clip.track_id not in track_ids:
            out.reference(f"Clip {clip.id} references missing track {clip.track_id}")
        if clip.source_id not in source_ids:
            out.reference(f"Clip {clip.id} references missing source {clip.source_id}")
        if clip.start_frame > clip.end_frame:
            out.error(f"Clip {clip.id} has invalid frame range")


def _validate_operations(project: Project, clip_ids: Set[str], mask_ids: Set[str], out: _Collector) -> None:
    for operation in get_operation_list(project.operations):
        if not operation.id:
            out.error("Operation id is required")
        if isinstance(operation, DropKeyframesOp):
            pattern = operation.pattern
            if pattern is not None and pattern.every_nth is not None and pattern.every_nth <= 0:
                out.error("DropKeyframes every_nth must be positive")
        clip_id = getattr(operation, "clip_id", None)
        if clip_id and clip_id not in clip_ids:
            out.reference(f"{operation.type} references missing clip {clip_id}")
        if isinstance(operation, RedirectFramesOp) and operation.to_anchor.clip_id not in clip_ids:
            out.reference(f"{operation.type} references missing clip {operation.to_anchor.clip_id}")
        mask_id = getattr(operation, "mask_id", None)
        if mask_id and mask_id not in mask_ids:
            out.reference(f"{operation.type} references missing mask {mask_id}")

    unknown = project.operations.unknown_kinds()
    if unknown:
        out.error(f"Unknown operation kinds: {', '.join(unknown)}")


def _validate_masks(project: Project, clip_ids: Set[str], out: _Collector) -> None:
    for mask in project.masks:
        if mask.applies_to and mask.applies_to.clip_ids:
            for clip_id in mask.applies_to.clip_ids:
                if clip_id not in clip_ids:
                    out.reference(f"Mask {mask.id} references missing clip {clip_id}")
        for keyframe in mask.keyframes:
            width, height = keyframe.transform.width, keyframe.transform.height
            if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
                out.error(f"Mask {mask.id} has invalid dimensions at frame {keyframe.timeline_frame}")


def _validate_node_params(node_id: str, kind: str, params: Dict[str, Any], out: _Collector) -> None:
    model = NODE_PARAM_MODELS.get(kind)
    if model is None:
        return
    try:
        parsed = model.model_validate(params)
    except ValidationError:
        out.error(f"Node {node_id} has invalid parameters for {kind}")
        return
    probability = getattr(parsed, "probability", None)
    if probability is not None and not 0 <= probability <= 100:
        out.error(f"Node {node_id} probability {probability} is out of range 0-100")
    if isinstance(parsed, HoldReferenceFrameParams):
        for field in ("specific_frame_index", "fixed_frames", "fixed_seconds"):
            value = getattr(parsed, field)
            if value is not None and value < 0:
                out.error(f"Node {node_id} {field} must not be negative")


def _validate_graphs(store: GraphStore, project: Project, clip_ids: Set[str], out: _Collector) -> None:
    track_ids = {track.id for track in project.timeline.tracks}
    for key, graph in store.graphs.items():
        scope = graph.scope
        if key != scope.canonical_key():
            out.error(f"Mosh graph key {key} does not match scope {scope.canonical_key()}")
        if scope.timeline_id != project.timeline.id:
            out.reference(f"Mosh graph {key} references missing timeline {scope.timeline_id}")
        if scope.track_id and scope.track_id not in track_ids:
            out.reference(f"Mosh graph {key} references missing track {scope.track_id}")
        if scope.clip_id and scope.clip_id not in clip_ids:
            out.reference(f"Mosh graph {key} references missing clip {scope.clip_id}")
        for node in graph.nodes:
            _validate_node_params(node.id, node.kind, node.params, out)


def validate_project(project: Project) -> ValidationResult:
    out = _Collector()
    if not project.metadata.name:
        out.error("Project name is required")
    if project.settings.block_size <= 0:
        out.error("Block size must be positive")
    if not project.timeline.tracks:
        out.error("At least one track is required")

    clip_ids = {clip.id for clip in project.timeline.clips}
    mask_ids = {mask.id for mask in project.masks}

    _validate_timeline(project, out)
    _validate_operations(project, clip_ids, mask_ids, out)
    for curve in project.automation_curves:
        out.diagnostics.extend(validate_automation_curve(curve, project.operations))
    _validate_masks(project, clip_ids, out)
    _validate_graphs(project.mosh_graphs, project, clip_ids, out)

    result = out.result()
    if not result.valid:
        logger.debug("Project %r has %d validation errors", project.metadata.name, len(result.errors))
    return result


def validate_project_payload(payload: Dict[str, Any]) -> ValidationResult:
    """Validate raw JSON-compatible data; parse failures become diagnostics."""
    try:
        project = Project.model_validate(payload)
    except ValidationError as exc:
        out = _Collector()
        for err in exc.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()))
            out.error(f"Invalid project field {loc}: {err.get('msg')}")
        return out.result()
    return validate_project(project)


def assert_valid_project(project: Project) -> None:
    result = validate_project(project)
    if not result.valid:
        raise ProjectValidationError(
            f"Project validation failed: {', '.join(result.errors)}", result.errors
        )
