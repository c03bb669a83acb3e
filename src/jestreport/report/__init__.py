"""Text rendering of reconstructed test runs.

This package turns the execution forest and coverage payloads into report
text: the per-file tree, failure details, totals and the coverage table.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from jestreport.tree.node_model import ExecutionNode


class LeafStatus(Enum):
    """Display status of a leaf test line."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    TODO = "todo"


def leaf_status(node: ExecutionNode) -> LeafStatus:
    """Skip wins over todo, todo over the pass/fail outcome."""
    if node.event.is_skipped:
        return LeafStatus.SKIPPED
    if node.event.is_todo:
        return LeafStatus.TODO
    if node.failed:
        return LeafStatus.FAILED
    return LeafStatus.PASSED


@dataclass
class FailureLog:
    """Failing leaves collected in traversal order, drained once per run."""

    nodes: list[ExecutionNode] = field(default_factory=list)

    def add(self, node: ExecutionNode) -> None:
        self.nodes.append(node)

    def drain(self) -> list[ExecutionNode]:
        drained, self.nodes = self.nodes, []
        return drained

    def __len__(self) -> int:
        return len(self.nodes)
