from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from jestreport.colors import PLAIN, SPEC_SYMBOLS, Palette
from jestreport.events.event_model import Event, EventKind
from jestreport.logging_config import get_logger
from jestreport.report.coverage_report import render_coverage_report
from jestreport.report.error_report import SourceReader, read_source_file
from jestreport.report.hierarchical_report import (
    collect_failures,
    render_failure_details,
    render_summaries,
)
from jestreport.reporters.base import ReporterState
from jestreport.utils.paths import indent

logger = get_logger(__name__)


class JestStyleReporter:
    """Buffered reporter printing a per-file tree at the end of the run.

    Result events are held until a depth-0 result closes a top-level batch,
    which is then attached to the forest. Nothing is printed for tests until
    the run-level ``test:summary``; coverage is printed as it arrives.
    """

    def __init__(
        self,
        palette: Palette = PLAIN,
        *,
        cwd: Optional[Union[str, Path]] = None,
        columns: Optional[int] = None,
        coverage_table: bool = True,
        read_source: SourceReader = read_source_file,
    ) -> None:
        self.palette = palette
        self.cwd = cwd
        self.columns = columns
        self.coverage_table = coverage_table
        self.read_source = read_source
        self.state = ReporterState()
        self._run_complete = False

    def reset(self) -> None:
        self.state.reset()
        self._run_complete = False
        logger.debug("reporter_reset", reporter="jest")

    def handle(self, event: Event) -> Optional[str]:
        if event.is_result:
            if self._run_complete:
                # first result of the next run (watch mode)
                self.reset()
            self.state.event_buffer.append(event)
            if event.nesting == 0:
                self.state.flush_buffer()
            return None

        if event.kind == EventKind.SUMMARY and event.summary is not None:
            if not event.summary.is_run_level:
                self.state.file_summaries.append(event.summary)
                return None
            return self._render_run_summary(event)

        if event.kind == EventKind.COVERAGE and event.coverage is not None:
            return render_coverage_report(
                event.coverage,
                palette=self.palette,
                pad=indent(event.nesting),
                symbol=SPEC_SYMBOLS["test:coverage"],
                color=self.palette.blue,
                table=self.coverage_table,
                columns=self.columns,
            )

        logger.debug("event_ignored", kind=event.kind.value, reporter="jest")
        return None

    def _render_run_summary(self, event: Event) -> str:
        assert event.summary is not None
        if self.state.event_buffer:
            # results never closed by a depth-0 result
            self.state.flush_buffer()
        self._run_complete = True
        return render_summaries(
            event.summary,
            self.state.file_summaries,
            self.state.roots,
            self.state.failures,
            self.palette,
            cwd=self.cwd,
            read_source=self.read_source,
        )

    def flush(self) -> str:
        """Failure details of a run that ended without a run-level summary."""
        if self._run_complete:
            return ""
        if self.state.event_buffer:
            self.state.flush_buffer()
        collect_failures(self.state.roots, self.state.failures)
        return render_failure_details(
            self.state.failures,
            self.palette,
            cwd=self.cwd,
            read_source=self.read_source,
        )
