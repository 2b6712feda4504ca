import json

import pytest
from pydantic import ValidationError

from dmosh.mosh_graph.models import NodeKind, OperationNode, ScopeId, create_default_node
from dmosh.mosh_graph.service import add_node, set_global_bypass
from dmosh.operations.models import DropKeyframesOp, FlatOperationSet, HoldSmearOp
from dmosh.project.models import AutomationCurve, AutomationPoint, AutomationTarget, MaskTransform, Project
from dmosh.project.service import create_empty_project, project_from_json, project_to_json
from dmosh.timeline.models import Timeline, TimelineRange


def test_empty_project_defaults():
    project = create_empty_project("Blank", author="me")
    assert project.metadata.name == "Blank"
    assert project.timeline.id == "timeline-1"
    assert [t.id for t in project.timeline.tracks] == ["track-1"]
    assert project.mosh_graphs.graphs == {}
    assert project.mosh_graphs.global_bypass is False


def test_round_trip_with_empty_graph_store():
    project = create_empty_project("Blank")
    restored = project_from_json(project_to_json(project))
    assert restored == project


def test_round_trip_with_graphs_operations_and_curves(sample_project):
    timeline = ScopeId(kind="timeline", timeline_id="timeline-1")
    clip = ScopeId(kind="clip", timeline_id="timeline-1", track_id="track-1", clip_id="clip-1")
    store = add_node(sample_project.mosh_graphs, timeline, create_default_node(NodeKind.HoldReferenceFrame))
    store = add_node(store, clip, OperationNode(id="exp-1", kind="FutureOp", params={"depth": [1, 2]}))
    sample_project.mosh_graphs = set_global_bypass(store, True)
    sample_project.operations = FlatOperationSet(
        drop_keyframes=[DropKeyframesOp(id="d1", clip_id="clip-1", timeline_range=TimelineRange(start_frame=0, end_frame=4))],
        hold_smear=[HoldSmearOp(id="h1", anchor_frame=2, range=TimelineRange(start_frame=2, end_frame=8))],
    )
    sample_project.automation_curves = [
        AutomationCurve(
            id="curve-1",
            target=AutomationTarget(operation_id="d1", param="scale"),
            points=[AutomationPoint(t=0, value=1.5)],
            interpolation="step",
        )
    ]

    payload = project_to_json(sample_project)
    restored = project_from_json(payload)

    assert restored == sample_project
    assert restored.mosh_graphs.graphs[clip.canonical_key()].nodes[0].kind == "FutureOp"
    # graphs are stored under their canonical string keys
    raw = json.loads(payload)
    assert set(raw["mosh_graphs"]["graphs"]) == {"timeline::timeline-1", "clip::timeline-1::track-1::clip-1"}
    assert raw["mosh_graphs"]["global_bypass"] is True


def test_missing_graph_store_defaults_on_load(sample_project):
    raw = json.loads(project_to_json(sample_project))
    del raw["mosh_graphs"]
    restored = Project.model_validate(raw)
    assert restored.mosh_graphs.graphs == {}


def test_unknown_operation_kinds_survive_round_trip(sample_project):
    sample_project.operations = FlatOperationSet.model_validate({"time_warp": [{"id": "tw"}]})
    restored = project_from_json(project_to_json(sample_project))
    assert restored.operations.unknown_kinds() == ["time_warp"]


@pytest.mark.parametrize(
    "build",
    [
        lambda v: AutomationPoint(t=0, value=v),
        lambda v: AutomationPoint(t=v, value=1),
        lambda v: MaskTransform(x=0, y=0, width=v, height=10),
        lambda v: Timeline(fps=v),
    ],
)
@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_non_finite_floats_are_rejected(build, value):
    with pytest.raises(ValidationError):
        build(value)


def test_non_finite_payload_is_reported_not_raised(sample_project):
    from dmosh.validation.service import validate_project_payload

    raw = sample_project.model_dump()
    raw["timeline"]["fps"] = float("inf")
    result = validate_project_payload(raw)
    assert result.valid is False
    assert any(e.startswith("Invalid project field timeline.fps") for e in result.errors)
