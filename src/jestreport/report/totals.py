from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from jestreport.colors import Palette
from jestreport.events.event_model import EventKind
from jestreport.tree.node_model import ExecutionNode


@dataclass(frozen=True)
class Totals:
    """Outcome tally for either containers or leaves of a forest."""

    passed: int = 0
    failed: int = 0
    skipped: int = 0
    todo: int = 0
    total: int = 0


def count_totals(roots: Iterable[ExecutionNode], suites: bool) -> Totals:
    """Tally outcomes over the forest.

    Args:
        roots: Root nodes of the forest.
        suites: Count containers when True, leaf tests otherwise.
    """
    passed = failed = skipped = todo = total = 0
    for root in roots:
        for node in root.walk():
            if node.is_container != suites:
                continue
            event = node.event
            total += 1
            if event.is_skipped:
                skipped += 1
            if event.is_todo:
                todo += 1
            if event.kind == EventKind.PASS:
                passed += 1
            elif event.kind == EventKind.FAIL:
                failed += 1
    return Totals(passed=passed, failed=failed, skipped=skipped, todo=todo, total=total)


def format_totals_line(label: str, total: int, totals: Totals, palette: Palette) -> str:
    """``<label> 1 failed, 2 skipped, 3 passed, 6 total``; zero counts are omitted."""
    segments = [label]
    if totals.failed:
        segments.append(f"{palette.red}{palette.bold}{totals.failed} failed{palette.reset},")
    if totals.skipped:
        segments.append(f"{palette.yellow}{palette.bold}{totals.skipped} skipped{palette.reset},")
    if totals.todo:
        segments.append(f"{palette.cyan}{palette.bold}{totals.todo} todo{palette.reset},")
    if totals.passed:
        segments.append(f"{palette.green}{palette.bold}{totals.passed} passed{palette.reset},")
    segments.append(f"{total} total")
    return " ".join(segments)
