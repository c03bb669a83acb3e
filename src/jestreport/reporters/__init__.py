"""Reporters: stream transforms from events to report text.

Both reporters expose ``handle(event) -> str | None`` and ``flush() -> str``
so any host loop can drive them.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from jestreport.colors import PLAIN, Palette
from jestreport.config import ReporterStyle
from jestreport.reporters.base import Reporter, ReporterState
from jestreport.reporters.jest_style import JestStyleReporter
from jestreport.reporters.spec_lite import SpecLiteReporter

__all__ = [
    "JestStyleReporter",
    "Reporter",
    "ReporterState",
    "SpecLiteReporter",
    "create_reporter",
]


def create_reporter(
    style: Union[ReporterStyle, str] = ReporterStyle.JEST,
    palette: Palette = PLAIN,
    *,
    cwd: Optional[Union[str, Path]] = None,
    columns: Optional[int] = None,
    coverage_table: bool = True,
) -> Reporter:
    """Build a reporter for ``style`` (``jest`` or ``spec``)."""
    style = ReporterStyle(style)
    if style == ReporterStyle.SPEC:
        return SpecLiteReporter(palette, cwd=cwd, columns=columns, coverage_table=coverage_table)
    return JestStyleReporter(palette, cwd=cwd, columns=columns, coverage_table=coverage_table)
