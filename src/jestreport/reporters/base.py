from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from jestreport.events.event_model import Event, RunSummary
from jestreport.report import FailureLog
from jestreport.tree.build_tree import TreeBuilder
from jestreport.tree.node_model import ExecutionNode


class Reporter(Protocol):
    """Synchronous stream transform: feed events, collect text chunks."""

    def handle(self, event: Event) -> Optional[str]:
        """Consume one event; return text to emit now, if any."""
        ...

    def flush(self) -> str:
        """Called once when the stream ends."""
        ...

    def reset(self) -> None:
        ...


@dataclass
class ReporterState:
    """Per-run buffers of the tree-based reporter."""

    event_buffer: list[Event] = field(default_factory=list)
    builder: TreeBuilder = field(default_factory=TreeBuilder)
    failures: FailureLog = field(default_factory=FailureLog)
    file_summaries: list[RunSummary] = field(default_factory=list)

    @property
    def roots(self) -> list[ExecutionNode]:
        return self.builder.roots

    def flush_buffer(self) -> list[ExecutionNode]:
        """Build the buffered batch into the forest and empty the buffer."""
        added = self.builder.build(self.event_buffer)
        self.event_buffer = []
        return added

    def reset(self) -> None:
        self.event_buffer = []
        self.builder.reset()
        self.failures = FailureLog()
        self.file_summaries = []
