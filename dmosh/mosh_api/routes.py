from __future__ import annotations

import random
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from dmosh.common.error_envelope import error_response
from dmosh.common.errors import EngineError, EngineErrorCode
from dmosh.mosh_graph.models import GraphStore, ScopeKind
from dmosh.operations.models import FlatOperationSet, Operation
from dmosh.operations.service import compose_operations
from dmosh.pipeline.adapter import build_pipeline
from dmosh.pipeline.models import Pipeline
from dmosh.project.models import Project
from dmosh.render.models import RenderPlan, RenderSettings
from dmosh.render.service import MoshEngine, get_mosh_engine
from dmosh.structural_stream.models import StructuralFrame
from dmosh.structural_stream.service import build_structural_stream
from dmosh.structural_transform.service import apply_pipeline
from dmosh.validation.models import ValidationResult
from dmosh.validation.service import validate_project_payload

router = APIRouter(prefix="/mosh", tags=["mosh"])

_ERROR_STATUS = {
    EngineErrorCode.INVALID_PROJECT: 422,
    EngineErrorCode.NORMALIZATION_FAILED: 422,
    EngineErrorCode.SOURCE_MISSING: 404,
}


def get_engine() -> MoshEngine:
    return get_mosh_engine()


class StreamRequest(BaseModel):
    duration_frames: int
    fps: float


class ApplyRequest(BaseModel):
    stream: List[StructuralFrame]
    pipeline: Pipeline
    scope_kind: ScopeKind = ScopeKind.TIMELINE
    seed: Optional[int] = None
    fps: Optional[float] = None


class RenderPlanRequest(BaseModel):
    project: Project
    settings: RenderSettings
    seed: Optional[int] = None


@router.post("/validate", response_model=ValidationResult)
def validate(payload: Dict[str, Any] = Body(...)):
    return validate_project_payload(payload)


@router.post("/compose", response_model=List[Operation])
def compose(operations: FlatOperationSet):
    return compose_operations(operations)


@router.post("/stream", response_model=List[StructuralFrame])
def stream(request: StreamRequest):
    return build_structural_stream(request.duration_frames, request.fps)


@router.post("/pipeline", response_model=Pipeline)
def pipeline(store: GraphStore):
    return build_pipeline(store)


@router.post("/apply", response_model=List[StructuralFrame])
def apply(request: ApplyRequest):
    rng = random.Random(request.seed) if request.seed is not None else None
    return apply_pipeline(request.stream, request.pipeline, request.scope_kind, rng=rng, fps=request.fps)


@router.post("/render-plan", response_model=RenderPlan)
def render_plan(request: RenderPlanRequest, engine: MoshEngine = Depends(get_engine)):
    rng = random.Random(request.seed) if request.seed is not None else None
    try:
        return engine.build_render_plan(request.project, request.settings, rng=rng)
    except EngineError as exc:
        details = exc.details if isinstance(exc.details, dict) else {"errors": exc.details}
        error_response(
            code=f"mosh.{exc.code.value.lower()}",
            message=exc.message,
            status_code=_ERROR_STATUS.get(exc.code, 500),
            resource_kind="project",
            details=details,
        )
