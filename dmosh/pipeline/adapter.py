"""
Pipeline Adapter.

Translates the scoped graph model into an execution Pipeline. Pure and
total: nothing is validated here, unknown node kinds become Inert.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from dmosh.mosh_graph.models import GraphStore, NodeKind, OperationGraph, OperationNode
from dmosh.mosh_graph.service import collect_all_graphs, collect_graphs_for_clip
from dmosh.pipeline.models import MappedKind, OperationInstance, Pipeline, ScopePipeline
from dmosh.timeline.models import TimelineClip

_KIND_MAP: Dict[str, MappedKind] = {
    NodeKind.DropIntraFrames.value: MappedKind.DropIntraFrames,
    NodeKind.DropPredictedFrames.value: MappedKind.DropPredictedFrames,
    NodeKind.HoldReferenceFrame.value: MappedKind.HoldReferenceFrame,
    NodeKind.ClassicDatamosh.value: MappedKind.ClassicDatamosh,
    NodeKind.FreezeReferenceFrame.value: MappedKind.FreezeReferenceFrame,
    NodeKind.ClampLongMotionVectors.value: MappedKind.ClampMotionVectors,
    NodeKind.PerturbMotionVectors.value: MappedKind.PerturbMotionVectors,
    NodeKind.QuantizeResiduals.value: MappedKind.QuantizerBias,
    NodeKind.VisualizeQuantizationNoise.value: MappedKind.VisualizeQuantizationNoise,
}


def map_operation_kind(kind: str) -> MappedKind:
    key = getattr(kind, "value", kind)
    return _KIND_MAP.get(key, MappedKind.Inert)


def map_node_to_instance(node: OperationNode) -> OperationInstance:
    return OperationInstance(
        id=node.id,
        kind=map_operation_kind(node.kind),
        enabled=not node.bypass,
        params=dict(node.params),
    )


def graph_to_scope_pipeline(graph: OperationGraph) -> ScopePipeline:
    return ScopePipeline(
        scope=graph.scope.kind,
        scope_key=graph.scope.canonical_key(),
        chain=[map_node_to_instance(node) for node in graph.nodes],
    )


def _pipeline_from(graphs: Iterable[OperationGraph], global_bypass: bool) -> Pipeline:
    return Pipeline(
        global_bypass=bool(global_bypass),
        scopes=[graph_to_scope_pipeline(graph) for graph in graphs],
    )


def build_pipeline(store: Optional[GraphStore]) -> Pipeline:
    """Every stored graph, in store order."""
    return _pipeline_from(collect_all_graphs(store), store.global_bypass if store else False)


def build_pipeline_for_clip(
    store: Optional[GraphStore],
    timeline_id: str,
    clip: Optional[TimelineClip],
) -> Pipeline:
    """Only the timeline, track and clip graphs that target this clip."""
    graphs = collect_graphs_for_clip(store, timeline_id, clip)
    return _pipeline_from(graphs, store.global_bypass if store else False)
