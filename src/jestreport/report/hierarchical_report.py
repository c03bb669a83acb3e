"""Hierarchical text report for a reconstructed test run.

Layout of a single-file run:

     FAIL  test/math.test.js
      arithmetic
        ✓ adds (1 ms)
        ✕ divides (2 ms)
        ○ skipped rounds

      ● arithmetic › divides

        Expected: 2
        Received: 3
        ...

    Test Suites: 1 failed, 1 total
    Tests:       1 failed, 1 skipped, 1 passed, 3 total
    Time:        0.012 s

Lines follow the recorded traversal order; nothing is sorted.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

from jestreport.colors import TREE_SYMBOLS, Palette
from jestreport.events.event_model import RunSummary
from jestreport.report import FailureLog, LeafStatus, leaf_status
from jestreport.report.error_report import SourceReader, format_error, read_source_file
from jestreport.report.totals import count_totals, format_totals_line
from jestreport.tree.node_model import ExecutionNode
from jestreport.utils.paths import indent, rel


def _format_leaf(node: ExecutionNode, palette: Palette) -> str:
    event = node.event
    status = leaf_status(node)
    duration = f"{palette.bright_black}({event.details.duration_ms:.0f} ms){palette.reset}"

    if status == LeafStatus.SKIPPED:
        icon = f"{palette.yellow}{TREE_SYMBOLS['test:skip']}{palette.reset}"
        text = f"skipped {event.name}"
    elif status == LeafStatus.TODO:
        icon = f"{palette.cyan}{TREE_SYMBOLS['test:todo']}{palette.reset}"
        text = f"TODO {event.name}"
    elif status == LeafStatus.FAILED:
        icon = f"{palette.red}{TREE_SYMBOLS['test:fail']}{palette.reset}"
        text = f"{event.name} {duration}"
    else:
        icon = f"{palette.green}{TREE_SYMBOLS['test:pass']}{palette.reset}"
        text = f"{event.name} {duration}"

    return f"{indent(1 + event.nesting)}{icon} {text}"


def render_file_report(
    roots: Sequence[ExecutionNode],
    filename: Optional[str],
    palette: Palette,
    failures: FailureLog,
) -> str:
    """Render every suite and test of one file (all files when ``filename`` is None).

    Failing tests that carry an error are appended to ``failures`` in the
    order they are rendered.
    """
    chunks: list[str] = []

    def visit(node: ExecutionNode) -> None:
        if node.is_container:
            chunks.append(f"{indent(1 + node.nesting)}{node.name}")
            for child in node.children:
                visit(child)
            return
        chunks.append(_format_leaf(node, palette))
        if node.failed and node.event.error is not None:
            failures.add(node)

    for root in roots:
        # roots without a file belong to whatever file is being rendered
        if filename is None or root.event.file in (filename, None):
            visit(root)

    chunks.append("")
    return "\n".join(chunks)


def collect_failures(roots: Iterable[ExecutionNode], failures: FailureLog) -> None:
    """Append every failing leaf of the forest, in traversal order."""
    for root in roots:
        for node in root.walk():
            if node.failed and not node.is_container:
                failures.add(node)


def format_status_banner(success: bool, palette: Palette) -> str:
    if success:
        return f"{palette.bg_green}{palette.black}{palette.bold} PASS {palette.reset}"
    return f"{palette.bg_red}{palette.black}{palette.bold} FAIL {palette.reset}"


def render_final_summary(
    summary: RunSummary,
    roots: Sequence[ExecutionNode],
    palette: Palette,
) -> str:
    """Suite and test totals plus the elapsed time."""
    lines = [
        format_totals_line(
            f"{palette.bold}Test Suites:{palette.reset}",
            summary.counts.suites,
            count_totals(roots, suites=True),
            palette,
        ),
        format_totals_line(
            f"{palette.bold}Tests:      {palette.reset}",
            summary.counts.tests,
            count_totals(roots, suites=False),
            palette,
        ),
        f"{palette.bold}Time:       {palette.reset} {summary.duration_ms / 1000:.3f} s",
    ]
    return "\n".join(lines) + palette.reset


def render_failure_details(
    failures: FailureLog,
    palette: Palette,
    cwd: Optional[Union[str, Path]] = None,
    read_source: SourceReader = read_source_file,
) -> str:
    """Drain ``failures`` into detail blocks; empty string when there are none."""
    nodes = failures.drain()
    if not nodes:
        return ""
    return "\n".join(format_error(node, palette, cwd=cwd, read_source=read_source) for node in nodes)


def render_summaries(
    run_summary: RunSummary,
    file_summaries: Sequence[RunSummary],
    roots: Sequence[ExecutionNode],
    failures: FailureLog,
    palette: Palette,
    cwd: Optional[Union[str, Path]] = None,
    read_source: SourceReader = read_source_file,
) -> str:
    """Full end-of-run output.

    With several per-file summaries only a PASS/FAIL line per file is shown;
    with one (or none) the file's whole tree is rendered. Failure details and
    the totals footer follow in both cases.
    """
    blocks: list[str] = []

    if len(file_summaries) > 1:
        for file_summary in file_summaries:
            blocks.append(f"{format_status_banner(file_summary.success, palette)} {rel(file_summary.file, cwd)}")
        blocks.append("")
        collect_failures(roots, failures)
    elif file_summaries:
        file_summary = file_summaries[0]
        blocks.append(f"{format_status_banner(file_summary.success, palette)} {rel(file_summary.file, cwd)}")
        blocks.append(render_file_report(roots, file_summary.file, palette, failures))
    else:
        blocks.append(format_status_banner(run_summary.success, palette))
        blocks.append(render_file_report(roots, None, palette, failures))

    details = render_failure_details(failures, palette, cwd=cwd, read_source=read_source)
    if details:
        blocks.append(details)

    blocks.append(render_final_summary(run_summary, roots, palette))
    return "\n".join(blocks) + "\n"
