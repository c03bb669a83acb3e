from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from jestreport.events.event_model import Event, EventKind


@dataclass(eq=False)
class ExecutionNode:
    """One reconstructed node of the execution tree.

    ``parent`` is a back-reference only; the forest owns every node.
    """

    event: Event
    children: list[ExecutionNode] = field(default_factory=list)
    parent: Optional[ExecutionNode] = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.event.name

    @property
    def nesting(self) -> int:
        return self.event.nesting

    @property
    def is_container(self) -> bool:
        return self.event.is_container

    @property
    def failed(self) -> bool:
        return self.event.kind == EventKind.FAIL

    @property
    def passed(self) -> bool:
        return self.event.kind == EventKind.PASS

    def ancestors(self) -> list[ExecutionNode]:
        """Ancestors from the root down to the direct parent."""
        chain: list[ExecutionNode] = []
        node = self.parent
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    def path_names(self) -> list[str]:
        """Names from the root down to this node."""
        return [n.name for n in self.ancestors()] + [self.name]

    def walk(self) -> Iterator[ExecutionNode]:
        """Pre-order traversal of this subtree."""
        yield self
        for child in self.children:
            yield from child.walk()
