import random

import pytest

from dmosh.mosh_graph.models import NodeKind, ScopeId, create_default_node
from dmosh.mosh_graph.service import add_node
from dmosh.pipeline.models import STUB_KINDS, MappedKind, OperationInstance, Pipeline, ScopePipeline
from dmosh.structural_stream.models import FrameType
from dmosh.structural_stream.service import build_structural_stream
from dmosh.structural_transform.service import apply_pipeline, apply_pipeline_to_clip
from dmosh.structural_transform.transforms import TRANSFORM_TABLE


def _types(stream):
    return "".join(f.frame_type.value for f in stream)


def _pipeline(*instances, scope="timeline", bypass=False):
    chain = [
        OperationInstance(id=f"op-{n}", kind=kind, params=params, enabled=enabled)
        for n, (kind, params, enabled) in enumerate(instances)
    ]
    return Pipeline(global_bypass=bypass, scopes=[ScopePipeline(scope=scope, chain=chain)])


def _op(kind, params=None, enabled=True):
    return (kind, params or {}, enabled)


@pytest.fixture
def stream():
    # IPBPIPBPIPBP
    return build_structural_stream(12, 4)


def test_every_engine_kind_has_a_transform():
    assert set(TRANSFORM_TABLE) == set(MappedKind)


@pytest.mark.parametrize("scope", ["timeline", "track", "clip"])
def test_global_bypass_returns_input(stream, scope):
    pipeline = _pipeline(_op(MappedKind.ClassicDatamosh), scope=scope, bypass=True)
    assert apply_pipeline(stream, pipeline, scope) is stream


def test_missing_pipeline_or_scope_passes_through(stream):
    assert apply_pipeline(stream, None, "timeline") is stream
    assert apply_pipeline(stream, Pipeline(), "timeline") is stream
    pipeline = _pipeline(_op(MappedKind.ClassicDatamosh), scope="clip")
    assert apply_pipeline(stream, pipeline, "timeline") is stream
    assert apply_pipeline(stream, pipeline, "project") is stream


@pytest.mark.parametrize("kind", sorted(STUB_KINDS | {MappedKind.Inert}, key=lambda k: k.value))
def test_stub_kinds_leave_stream_untouched(stream, kind):
    before = [f.model_dump() for f in stream]
    result = apply_pipeline(stream, _pipeline(_op(kind, {"anything": 1})), "timeline")
    assert [f.model_dump() for f in result] == before


def test_drop_intra_frames_all(stream):
    pipeline = _pipeline(_op(MappedKind.DropIntraFrames, {"probability": 100, "first_intra_only": False}))
    result = apply_pipeline(stream, pipeline, "timeline", rng=random.Random(1))
    assert all(f.frame_type != FrameType.I for f in result)
    # surviving frames keep their original indices
    assert [f.index for f in result] == [1, 2, 3, 5, 6, 7, 9, 10, 11]


def test_drop_intra_frames_zero_probability(stream):
    pipeline = _pipeline(_op(MappedKind.DropIntraFrames, {"probability": 0}))
    assert apply_pipeline(stream, pipeline, "timeline") == stream


def test_drop_intra_first_only_leaves_later_intra_frames(stream):
    pipeline = _pipeline(_op(MappedKind.DropIntraFrames, {"probability": 100, "first_intra_only": True}))
    result = apply_pipeline(stream, pipeline, "timeline", rng=random.Random(1))
    assert [f.index for f in result if f.frame_type == FrameType.I] == [4, 8]
    assert len(result) == 11


def test_seeded_drops_are_reproducible():
    long_stream = build_structural_stream(200, 2)
    pipeline = _pipeline(_op(MappedKind.DropIntraFrames, {"probability": 50}))
    first = apply_pipeline(long_stream, pipeline, "timeline", rng=random.Random(42))
    second = apply_pipeline(long_stream, pipeline, "timeline", rng=random.Random(42))
    assert first == second
    assert 0 < sum(1 for f in first if f.frame_type == FrameType.I) < 100


def test_default_random_source_is_deterministic():
    long_stream = build_structural_stream(200, 2)
    pipeline = _pipeline(_op(MappedKind.DropPredictedFrames, {"probability": 50, "target_types": ["P"]}))
    assert apply_pipeline(long_stream, pipeline, "timeline") == apply_pipeline(long_stream, pipeline, "timeline")


def test_drop_predicted_frames(stream):
    both = _pipeline(_op(MappedKind.DropPredictedFrames, {"probability": 100, "target_types": ["P", "B"]}))
    assert _types(apply_pipeline(stream, both, "timeline")) == "III"

    only_b = _pipeline(_op(MappedKind.DropPredictedFrames, {"probability": 100, "target_types": ["B"]}))
    assert _types(apply_pipeline(stream, only_b, "timeline")) == "IPPIPPIPP"


def test_hold_first_intra_fixed_frames(stream):
    params = {"mode": "FirstIntra", "duration_mode": "FixedFrames", "fixed_frames": 2}
    result = apply_pipeline(stream, _pipeline(_op(MappedKind.HoldReferenceFrame, params)), "timeline")

    assert _types(result) == _types(stream)
    assert [f.content_from for f in result[:4]] == [None, 0, 0, None]
    assert result[1].held_from == 0
    assert result[2].reference_indices == [0]
    # the input stream is not modified
    assert stream[1].content_from is None


def test_hold_until_next_intra(stream):
    params = {"mode": "FirstIntra", "duration_mode": "UntilNextIntra"}
    result = apply_pipeline(stream, _pipeline(_op(MappedKind.HoldReferenceFrame, params)), "timeline")
    held = [f.index for f in result if f.held_from is not None]
    assert held == [1, 2, 3]


def test_hold_last_intra_runs_to_stream_end(stream):
    params = {"mode": "LastIntra", "duration_mode": "UntilNextIntra"}
    result = apply_pipeline(stream, _pipeline(_op(MappedKind.HoldReferenceFrame, params)), "timeline")
    assert [f.index for f in result if f.held_from == 8] == [9, 10, 11]


def test_hold_specific_frame_index(stream):
    params = {"mode": "SpecificFrameIndex", "specific_frame_index": 5, "duration_mode": "FixedFrames", "fixed_frames": 2}
    result = apply_pipeline(stream, _pipeline(_op(MappedKind.HoldReferenceFrame, params)), "timeline")
    assert [f.index for f in result if f.held_from == 5] == [6, 7]
    assert result[6].reference_indices == [5]


def test_hold_specific_frame_index_is_clamped(stream):
    params = {"mode": "SpecificFrameIndex", "specific_frame_index": 50, "duration_mode": "FixedFrames", "fixed_frames": 3}
    result = apply_pipeline(stream, _pipeline(_op(MappedKind.HoldReferenceFrame, params)), "timeline")
    # clamped to the last frame, nothing follows it
    assert result == stream


def test_hold_fixed_seconds_uses_fps(stream):
    params = {"mode": "FirstIntra", "duration_mode": "FixedSeconds", "fixed_seconds": 0.5}
    pipeline = _pipeline(_op(MappedKind.HoldReferenceFrame, params))
    result = apply_pipeline(stream, pipeline, "timeline", fps=4)
    assert [f.index for f in result if f.held_from is not None] == [1, 2]
    assert apply_pipeline(stream, pipeline, "timeline") == stream


def test_classic_datamosh(stream):
    result = apply_pipeline(stream, _pipeline(_op(MappedKind.ClassicDatamosh, {"enabled": True})), "timeline")
    assert _types(result) == "IPBPPBPPBP"
    assert [f.index for f in result] == [0, 1, 2, 3, 5, 6, 7, 9, 10, 11]
    for frame in result[1:]:
        assert frame.content_from == 0
        assert frame.reference_indices == [0]
    assert result[0].content_from == 0


def test_classic_datamosh_disabled_or_without_intra(stream):
    assert apply_pipeline(stream, _pipeline(_op(MappedKind.ClassicDatamosh, {"enabled": False})), "timeline") is stream
    no_intra = stream[1:4]
    assert apply_pipeline(no_intra, _pipeline(_op(MappedKind.ClassicDatamosh)), "timeline") is no_intra


def test_freeze_reference_frame(stream):
    result = apply_pipeline(stream, _pipeline(_op(MappedKind.FreezeReferenceFrame, {"reference_index": 5})), "timeline")
    assert _types(result) == _types(stream)
    for frame in result:
        if frame.frame_type == FrameType.I:
            assert frame.reference_indices == []
        else:
            assert frame.reference_indices == [5]

    default = apply_pipeline(stream, _pipeline(_op(MappedKind.FreezeReferenceFrame)), "timeline")
    assert {tuple(f.reference_indices) for f in default if f.frame_type != FrameType.I} == {(0,)}


def test_disabled_instances_and_malformed_params_are_skipped(stream):
    pipeline = _pipeline(
        _op(MappedKind.ClassicDatamosh, enabled=False),
        _op(MappedKind.DropIntraFrames, {"probability": "lots"}),
    )
    assert apply_pipeline(stream, pipeline, "timeline") == stream


def test_chains_apply_in_order(stream):
    pipeline = _pipeline(
        _op(MappedKind.DropPredictedFrames, {"probability": 100, "target_types": ["B"]}),
        _op(MappedKind.ClassicDatamosh),
    )
    assert _types(apply_pipeline(stream, pipeline, "timeline")) == "IPPPPPP"


def test_every_matching_scope_chain_is_applied(stream):
    pipeline = Pipeline(
        scopes=[
            ScopePipeline(scope="track", chain=[OperationInstance(id="a", kind=MappedKind.DropPredictedFrames, params={"target_types": ["B"]})]),
            ScopePipeline(scope="track", chain=[OperationInstance(id="b", kind=MappedKind.DropPredictedFrames, params={"target_types": ["P"]})]),
        ]
    )
    assert _types(apply_pipeline(stream, pipeline, "track")) == "III"


def test_apply_pipeline_to_clip(sample_project):
    timeline = ScopeId(kind="timeline", timeline_id="timeline-1")
    sample_project.mosh_graphs = add_node(
        sample_project.mosh_graphs, timeline, create_default_node(NodeKind.ClassicDatamosh)
    )
    clip = sample_project.timeline.clips[0]
    assert _types(apply_pipeline_to_clip(sample_project, clip)) == "IPBPPBPPBP"

    sample_project.mosh_graphs = sample_project.mosh_graphs.model_copy(update={"global_bypass": True})
    assert _types(apply_pipeline_to_clip(sample_project, clip)) == "IPBPIPBPIPBP"


@pytest.mark.parametrize(
    "fixed_seconds, fps, held",
    [
        (1e308, 30, list(range(1, 12))),
        (0.5, float("inf"), list(range(1, 12))),
        (float("nan"), 30, []),
        (float("-inf"), 30, []),
    ],
)
def test_hold_fixed_seconds_with_extreme_values(stream, fixed_seconds, fps, held):
    params = {"mode": "FirstIntra", "duration_mode": "FixedSeconds", "fixed_seconds": fixed_seconds}
    result = apply_pipeline(stream, _pipeline(_op(MappedKind.HoldReferenceFrame, params)), "timeline", fps=fps)
    assert [f.index for f in result if f.held_from is not None] == held
    assert _types(result) == _types(stream)
