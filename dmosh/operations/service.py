"""
Operation Composer.

Reduces a FlatOperationSet to the ordered list of effective operations used
for execution and export.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from dmosh.operations.models import (
    OPERATION_PRIORITY,
    DropKeyframesOp,
    FlatOperationSet,
    FreezeReferenceOp,
    HoldSmearOp,
    Operation,
    RedirectFramesOp,
)

logger = logging.getLogger(__name__)


def operation_key(operation: Operation) -> str:
    """
    Deduplication key from the fields that make two operations the same edit.
    Two operations of one kind with equal keys collapse to the later one.
    """
    if isinstance(operation, DropKeyframesOp):
        r = operation.timeline_range
        return f"{operation.type}-{operation.clip_id or 'all'}-{r.start_frame}-{r.end_frame}"
    if isinstance(operation, FreezeReferenceOp):
        target = operation.clip_id or operation.source_id or "all"
        return f"{operation.type}-{target}-{operation.anchor_frame}"
    if isinstance(operation, RedirectFramesOp):
        r = operation.from_range
        anchor = operation.to_anchor
        return f"{operation.type}-{anchor.clip_id}-{anchor.anchor_frame}-{r.start_frame}-{r.end_frame}"
    if isinstance(operation, HoldSmearOp):
        r = operation.range
        return f"{operation.type}-{operation.clip_id or 'global'}-{r.start_frame}-{r.end_frame}"
    r = operation.timeline_range
    return f"{operation.type}-{r.start_frame}-{r.end_frame}-{operation.mask_id or 'none'}"


def get_operation_list(operations: FlatOperationSet) -> List[Operation]:
    """All operations in priority order, duplicates included."""
    ordered: List[Operation] = []
    for kind in OPERATION_PRIORITY:
        ordered.extend(getattr(operations, kind))
    return ordered


def compose_operations(operations: FlatOperationSet) -> List[Operation]:
    ordered: List[Operation] = []
    for kind in OPERATION_PRIORITY:
        seen: Dict[str, Operation] = {}
        for operation in getattr(operations, kind):
            # dict assignment keeps the first slot and replaces the value
            seen[operation_key(operation)] = operation
        ordered.extend(seen.values())
    logger.debug("Composed %d effective operations", len(ordered))
    return ordered


select_effective_operations = compose_operations
