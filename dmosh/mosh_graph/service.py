"""
Mosh Graph Service.

Copy-on-write accessors over a GraphStore. `upsert_graph` is the only write
path; every helper returns a new store and leaves its input untouched.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from dmosh.mosh_graph.models import (
    GraphStore,
    OperationGraph,
    OperationNode,
    ScopeId,
    ScopeKind,
    create_empty_graph,
)
from dmosh.timeline.models import TimelineClip

logger = logging.getLogger(__name__)

GraphUpdater = Callable[[OperationGraph], OperationGraph]


def canonical_key(scope: ScopeId) -> str:
    return scope.canonical_key()


def get_graph(store: Optional[GraphStore], scope: ScopeId) -> OperationGraph:
    """Graph for the scope, or an empty one when none was stored yet."""
    key = canonical_key(scope)
    if store is not None:
        existing = store.graphs.get(key)
        if existing is not None:
            return existing.model_copy(deep=True)
    return create_empty_graph(scope)


def upsert_graph(store: Optional[GraphStore], scope: ScopeId, updater: GraphUpdater) -> GraphStore:
    base = store or GraphStore()
    key = canonical_key(scope)
    next_graph = updater(get_graph(base, scope))
    graphs = dict(base.graphs)
    graphs[key] = next_graph
    logger.debug("Upserted mosh graph %s (%d nodes)", key, len(next_graph.nodes))
    return base.model_copy(update={"graphs": graphs})


def add_node(store: Optional[GraphStore], scope: ScopeId, node: OperationNode) -> GraphStore:
    """Append a node to the end of the scope's chain."""
    return upsert_graph(
        store, scope, lambda graph: graph.model_copy(update={"nodes": [*graph.nodes, node]})
    )


def remove_node(store: Optional[GraphStore], scope: ScopeId, node_id: str) -> GraphStore:
    return upsert_graph(
        store,
        scope,
        lambda graph: graph.model_copy(
            update={"nodes": [n for n in graph.nodes if n.id != node_id]}
        ),
    )


def toggle_node_bypass(store: Optional[GraphStore], scope: ScopeId, node_id: str) -> GraphStore:
    def _toggle(graph: OperationGraph) -> OperationGraph:
        nodes = [
            n.model_copy(update={"bypass": not n.bypass}) if n.id == node_id else n
            for n in graph.nodes
        ]
        return graph.model_copy(update={"nodes": nodes})

    return upsert_graph(store, scope, _toggle)


def set_global_bypass(store: Optional[GraphStore], bypass: bool) -> GraphStore:
    base = store or GraphStore()
    return base.model_copy(update={"global_bypass": bypass})


def collect_all_graphs(store: Optional[GraphStore]) -> List[OperationGraph]:
    if store is None:
        return []
    return list(store.graphs.values())


def collect_graphs_for_clip(
    store: Optional[GraphStore],
    timeline_id: str,
    clip: Optional[TimelineClip],
) -> List[OperationGraph]:
    """
    Graphs that apply to a clip, outermost first: timeline, track, clip.
    Only graphs actually present in the store are returned.
    """
    if store is None:
        return []

    scopes = [ScopeId(kind=ScopeKind.TIMELINE, timeline_id=timeline_id)]
    if clip is not None:
        scopes.append(ScopeId(kind=ScopeKind.TRACK, timeline_id=timeline_id, track_id=clip.track_id))
        scopes.append(
            ScopeId(
                kind=ScopeKind.CLIP,
                timeline_id=timeline_id,
                track_id=clip.track_id,
                clip_id=clip.id,
            )
        )

    graphs = []
    for scope in scopes:
        graph = store.graphs.get(canonical_key(scope))
        if graph is not None:
            graphs.append(graph)
    return graphs
