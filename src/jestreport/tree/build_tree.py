from __future__ import annotations

from typing import Sequence

from jestreport.events.event_model import Event
from jestreport.logging_config import get_logger
from jestreport.tree.node_model import ExecutionNode

logger = get_logger(__name__)


class TreeBuilder:
    """Rebuild the execution forest from flat, depth-tagged result events.

    The input carries no parent references. One bucket per nesting depth
    collects finished nodes; when a node at depth ``d`` arrives, everything
    gathered at ``d + 1`` since the last absorption is its children, because
    a runner reports a test's result only after all of its subtests.

    Buckets survive across batches so a run can be fed one top-level batch
    at a time; only :meth:`reset` clears them.
    """

    def __init__(self) -> None:
        self.buckets: list[list[ExecutionNode]] = []

    @property
    def roots(self) -> list[ExecutionNode]:
        """Every root node built since the last reset, in arrival order."""
        return self.buckets[0] if self.buckets else []

    def reset(self) -> None:
        self.buckets = []

    def build(self, batch: Sequence[Event]) -> list[ExecutionNode]:
        """Attach one batch to the forest.

        Returns:
            The root nodes this batch added to the depth-0 bucket.
        """
        if not batch:
            return []

        max_nesting = max(e.nesting for e in batch)
        while len(self.buckets) < max_nesting + 1:
            self.buckets.append([])

        roots_before = len(self.buckets[0])

        for event in batch:
            node = ExecutionNode(event=event)
            depth = event.nesting
            if depth == max_nesting:
                # nothing deeper in this batch: definitely a leaf
                self.buckets[depth].append(node)
                continue

            child_bucket = self.buckets[depth + 1]
            if child_bucket:
                node.children = child_bucket
                for child in child_bucket:
                    child.parent = node
                self.buckets[depth + 1] = []
            self.buckets[depth].append(node)

        added = self.buckets[0][roots_before:]
        logger.debug(
            "batch_built",
            events=len(batch),
            max_nesting=max_nesting,
            roots_added=len(added),
        )
        return added
