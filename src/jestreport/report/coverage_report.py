"""Coverage table rendered from a ``test:coverage`` summary.

Files are grouped into a directory tree so each row shows one path segment:

    ℹ start of coverage report
    ℹ --------------------------------------------------------------
    ℹ file       | line % | branch % | funcs % | uncovered lines
    ℹ --------------------------------------------------------------
    ℹ src        |        |          |         |
    ℹ  math.js   |  92.31 |   100.00 |   75.00 | 12-15 40
    ℹ --------------------------------------------------------------
    ℹ all files  |  92.31 |   100.00 |   75.00 |
    ℹ --------------------------------------------------------------
    ℹ end of coverage report
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Callable, Optional, Sequence, Union

from jestreport.colors import HORIZONTAL_ELLIPSIS, Palette
from jestreport.events.event_model import CoverageFile, CoverageSummary, LineCount
from jestreport.utils.paths import relative_to

COLUMNS = ["line %", "branch %", "funcs %"]
COLUMN_KEYS = ["covered_line_percent", "covered_branch_percent", "covered_function_percent"]
SEPARATOR = " | "

FILE_HEADER = "file"
ALL_FILES = "all files"
UNCOVERED_HEADER = "uncovered lines"
MIN_NUMERIC_WIDTH = 6

HIGH_COVERAGE = 90
MEDIUM_COVERAGE = 50

Cell = Union[str, float, int]


@dataclass
class CoverageTree:
    """Directory-shaped tree; a node with ``file`` set is a source file."""

    children: dict[str, CoverageTree] = field(default_factory=dict)
    file: Optional[CoverageFile] = None


@dataclass(frozen=True)
class FileTree:
    tree: CoverageTree
    depth: int
    longest_segment: int


def build_file_tree(summary: CoverageSummary) -> FileTree:
    """Nest the flat file list by path segment relative to the working directory."""
    tree = CoverageTree()
    tree_depth = 1
    longest_segment = 0

    for coverage_file in summary.files:
        if summary.working_directory:
            relative = relative_to(coverage_file.path, summary.working_directory)
        else:
            relative = coverage_file.path
        parts = [part for part in relative.split(os.sep) if part]

        current = tree
        for part in parts:
            current = current.children.setdefault(part, CoverageTree())
            longest_segment = max(longest_segment, len(part))
        current.file = coverage_file

        tree_depth = max(tree_depth, len(parts))

    return FileTree(tree=tree, depth=tree_depth, longest_segment=longest_segment)


@lru_cache(maxsize=None)
def table_line(prefix: str, width: int) -> str:
    """Horizontal rule; many rows share the same (prefix, width)."""
    return f"{prefix}{'-' * width}\n"


def truncate_start(text: str, width: int) -> str:
    """Keep the tail: ``…ath/to/file.js``."""
    if len(text) > width:
        return f"{HORIZONTAL_ELLIPSIS}{text[len(text) - width + 1:]}"
    return text


def truncate_end(text: str, width: int) -> str:
    """Keep the head: ``12-15 40 4…``."""
    if len(text) > width:
        return f"{text[:max(width - 1, 0)]}{HORIZONTAL_ELLIPSIS}"
    return text


def get_uncovered_lines(lines: Sequence[LineCount]) -> list[int]:
    return [entry.line for entry in lines if entry.count == 0]


def format_lines_to_ranges(values: Sequence[int]) -> list[str]:
    """Collapse consecutive numbers: ``[1, 2, 3, 5]`` -> ``["1-3", "5"]``."""
    ranges: list[list[int]] = []
    for index, value in enumerate(values):
        if index > 0 and value - values[index - 1] == 1:
            if len(ranges[-1]) == 1:
                ranges[-1].append(value)
            else:
                ranges[-1][1] = value
        else:
            ranges.append([value])
    return ["-".join(str(v) for v in r) for r in ranges]


def format_uncovered_lines(lines: Sequence[int], table: bool) -> str:
    if table:
        return " ".join(format_lines_to_ranges(lines))
    return ", ".join(str(line) for line in lines)


def coverage_color(coverage: float, palette: Palette) -> str:
    """High tier above 90, medium above 50, low otherwise."""
    if coverage > HIGH_COVERAGE:
        return palette.green
    if coverage > MEDIUM_COVERAGE:
        return palette.yellow
    return palette.red


@dataclass
class TableLayout:
    """Column widths of one coverage table."""

    file_width: int = 0
    column_widths: list[int] = field(default_factory=lambda: [0] * len(COLUMNS))
    uncovered_width: int = 0
    table_width: int = 0


def compute_layout(
    summary: CoverageSummary,
    file_tree: FileTree,
    prefix: str,
    colored: bool,
    columns: Optional[int],
) -> TableLayout:
    """Size the columns, shrinking file and uncovered columns to fit ``columns``."""
    file_width = file_tree.longest_segment + (file_tree.depth - 1)
    if colored:
        file_width += 2
    file_width = max(file_width, len(ALL_FILES))
    if columns and file_width > columns / 2:
        file_width = columns // 2

    column_widths = [max(len(title), MIN_NUMERIC_WIDTH) for title in COLUMNS]
    columns_width = sum(width + len(SEPARATOR) for width in column_widths)

    uncovered_width = max(
        (len(format_uncovered_lines(get_uncovered_lines(f.lines), True)) for f in summary.files),
        default=0,
    )
    uncovered_width = max(uncovered_width, len(UNCOVERED_HEADER))

    table_width = (file_width + 2) + columns_width + (uncovered_width + 2)

    available = (columns or math.inf) - len(prefix)
    if table_width > available:
        available = int(available)
        file_width = int(min(available * 0.5, file_width))
        uncovered_width = max(available - columns_width - (file_width + 2) - 2, 1)
        table_width = available

    return TableLayout(
        file_width=file_width,
        column_widths=column_widths,
        uncovered_width=uncovered_width,
        table_width=table_width,
    )


def render_coverage_report(
    summary: CoverageSummary,
    *,
    palette: Palette,
    pad: str = "",
    symbol: str = "",
    color: str = "",
    table: bool = True,
    columns: Optional[int] = None,
) -> str:
    """Render the coverage report for one ``test:coverage`` payload.

    Args:
        summary: Coverage payload.
        palette: Escape codes for tier coloring.
        pad: Indentation before every line.
        symbol: Glyph after the indentation on every line.
        color: Base color of the report; restored after tier-colored cells.
            Empty disables all coloring.
        table: Fixed-width table with rules; plain separated values otherwise.
        columns: Terminal width, or None when unconstrained.
    """
    prefix = f"{pad}{symbol}"
    report: list[str] = [f"{color}{prefix}start of coverage report\n"]

    file_tree = build_file_tree(summary)
    layout = TableLayout()
    if table:
        layout = compute_layout(summary, file_tree, prefix, bool(color), columns)

    def cell(
        text: str,
        width: int,
        align: Optional[str],
        truncate: Optional[Callable[[str, int], str]],
        coverage: Optional[float],
    ) -> str:
        if not table:
            return text
        result = text
        if align == "left":
            result = result.ljust(width)
        elif align == "right":
            result = result.rjust(width)
        if truncate is not None:
            result = truncate(result, width)
        if color and coverage is not None:
            return f"{coverage_color(coverage, palette)}{result}{color}"
        return result

    def report_line(
        file: str,
        coverage_columns: Sequence[Cell],
        file_coverage: Optional[float],
        uncovered: str,
        depth: int = 0,
    ) -> str:
        file_column = (
            f"{prefix}{' ' * depth}"
            f"{cell(file, layout.file_width - depth, 'left', truncate_start, file_coverage)}"
        )
        numeric_columns = []
        for index, value in enumerate(coverage_columns):
            if isinstance(value, (int, float)):
                numeric_columns.append(cell(f"{value:.2f}", layout.column_widths[index], "right", None, value))
            else:
                numeric_columns.append(cell(value, layout.column_widths[index], "right", None, None))
        uncovered_column = cell(uncovered, layout.uncovered_width, None, truncate_end, None)
        return f"{file_column}{SEPARATOR}{SEPARATOR.join(numeric_columns)}{SEPARATOR}{uncovered_column}\n"

    def body(tree: CoverageTree, depth: int = 0) -> None:
        for key, node in tree.children.items():
            if node.file is not None:
                coverages = [getattr(node.file, column_key) for column_key in COLUMN_KEYS]
                report.append(
                    report_line(
                        key,
                        coverages,
                        sum(coverages) / len(coverages),
                        format_uncovered_lines(get_uncovered_lines(node.file.lines), table),
                        depth,
                    )
                )
            else:
                report.append(report_line(key, [""] * len(COLUMNS), None, "", depth))
                body(node, depth + 1)

    if table:
        report.append(table_line(prefix, layout.table_width))
    report.append(report_line(FILE_HEADER, COLUMNS, None, UNCOVERED_HEADER))
    if table:
        report.append(table_line(prefix, layout.table_width))

    body(file_tree.tree)

    if table:
        report.append(table_line(prefix, layout.table_width))
    totals = [getattr(summary.totals, column_key) for column_key in COLUMN_KEYS]
    report.append(report_line(ALL_FILES, totals, None, ""))
    if table:
        report.append(table_line(prefix, layout.table_width))

    report.append(f"{prefix}end of coverage report\n")
    if color:
        report.append(palette.white)
    return "".join(report)
