"""Streaming "spec" reporter.

Every result is printed as soon as it arrives. Suites are announced lazily:
``test:start`` events are stacked, and when the first result under a suite
arrives the still-open parents are printed as ``▶ name`` headers.
"""
from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Optional, Union

from jestreport.colors import PLAIN, SPEC_SYMBOLS, Palette
from jestreport.errors import OrderingContractError
from jestreport.events.event_model import Event, EventKind, TestError
from jestreport.logging_config import get_logger
from jestreport.report.coverage_report import render_coverage_report
from jestreport.utils.paths import indent, rel

logger = get_logger(__name__)


def _result_color(kind: EventKind, palette: Palette) -> str:
    if kind == EventKind.FAIL:
        return palette.red
    if kind == EventKind.PASS:
        return palette.green
    return palette.white


def _diagnostic_color(level: Optional[str], palette: Palette) -> str:
    if level == "warn":
        return palette.yellow
    if level == "error":
        return palette.red
    return palette.blue


def _format_ms(duration_ms: float) -> str:
    if float(duration_ms).is_integer():
        return str(int(duration_ms))
    return str(duration_ms)


def describe_error(error: TestError) -> str:
    """Stack (or ``Name: message``) of the cause, plus the comparison operands."""
    cause = error.cause
    if cause is None:
        return error.message or "Error"

    text = cause.stack or f"{cause.name or 'Error'}: {cause.message or ''}"
    if cause.has_comparison:
        text += f"\nexpected: {cause.expected!r}\nactual: {cause.actual!r}"
        if cause.operator:
            text += f"\noperator: {cause.operator}"
    return text


def format_error_inline(error: Optional[TestError], pad: str) -> str:
    if error is None:
        return ""
    message = describe_error(error).replace("\r\n", "\n").replace("\n", f"\n{pad}  ")
    return f"\n{pad}  {message}\n"


def format_test_report(
    event: Event,
    palette: Palette,
    prefix: str = "",
    pad: str = "",
    has_children: bool = False,
    show_error_details: bool = True,
) -> str:
    """One result line, e.g. ``✔ adds (1.2ms)`` or ``﹣ rounds (0ms) # SKIP``."""
    color = _result_color(event.kind, palette)
    symbol = SPEC_SYMBOLS.get(event.kind.value, " ")

    duration = ""
    if event.details.duration_ms:
        duration = f" {palette.bright_black}({_format_ms(event.details.duration_ms)}ms){palette.reset}"
    title = f"{event.name}{duration}"

    if event.skip is not None:
        reason = event.skip if isinstance(event.skip, str) and event.skip else "SKIP"
        title += f" # {reason}"
    elif event.todo is not None:
        reason = event.todo if isinstance(event.todo, str) and event.todo else "TODO"
        title += f" # {reason}"

    error = format_error_inline(event.error, pad) if show_error_details else ""
    if has_children:
        subtests_only = event.error is not None and event.error.subtests_failed
        err = "" if not error or subtests_only else f"\n{error}"
    else:
        err = error

    if event.skip is not None:
        color = palette.bright_black
        symbol = SPEC_SYMBOLS["hyphen:minus"]

    return f"{prefix}{pad}{color}{symbol}{title}{palette.white}{err}"


class SpecLiteReporter:
    """Unbuffered reporter mirroring the runner's own ``spec`` output."""

    def __init__(
        self,
        palette: Palette = PLAIN,
        *,
        cwd: Optional[Union[str, Path]] = None,
        columns: Optional[int] = None,
        coverage_table: bool = True,
    ) -> None:
        self.palette = palette
        self.cwd = cwd
        self.columns = columns
        self.coverage_table = coverage_table
        # newest start on the left
        self._stack: deque[Event] = deque()
        # announced parents whose own result has not arrived yet, innermost first
        self._reported: deque[Event] = deque()
        self._failed_tests: list[Event] = []

    def reset(self) -> None:
        self._stack.clear()
        self._reported.clear()
        self._failed_tests = []
        logger.debug("reporter_reset", reporter="spec")

    def handle(self, event: Event) -> Optional[str]:
        kind = event.kind
        if kind == EventKind.START:
            self._stack.appendleft(event)
            return None
        if kind == EventKind.FAIL:
            if event.error is None or not event.error.subtests_failed:
                self._failed_tests.append(event)
            return self._handle_test_report(event)
        if kind == EventKind.PASS:
            return self._handle_test_report(event)
        if kind in (EventKind.STDOUT, EventKind.STDERR):
            return event.message
        if kind == EventKind.DIAGNOSTIC:
            color = _diagnostic_color(event.level, self.palette)
            return (
                f"{color}{indent(event.nesting)}{SPEC_SYMBOLS['test:diagnostic']}"
                f"{event.message or ''}{self.palette.white}\n"
            )
        if kind == EventKind.COVERAGE and event.coverage is not None:
            return render_coverage_report(
                event.coverage,
                palette=self.palette,
                pad=indent(event.nesting),
                symbol=SPEC_SYMBOLS["test:coverage"],
                color=self.palette.blue,
                table=self.coverage_table,
                columns=self.columns,
            )
        if kind == EventKind.SUMMARY and event.summary is not None and event.summary.is_run_level:
            return self._format_failed_test_results()

        logger.debug("event_ignored", kind=kind.value, reporter="spec")
        return None

    def flush(self) -> str:
        return self._format_failed_test_results()

    def _handle_test_report(self, event: Event) -> str:
        if self._stack:
            subtest = self._stack.popleft()
            if subtest.kind != EventKind.START:
                raise OrderingContractError(f"expected test:start before {event.name!r}")
            if subtest.nesting != event.nesting or subtest.name != event.name:
                raise OrderingContractError(
                    f"result {event.name!r} (nesting {event.nesting}) does not close "
                    f"start {subtest.name!r} (nesting {subtest.nesting})"
                )

        prefix = ""
        while self._stack:
            # announce every still-open parent, outermost first
            parent = self._stack.pop()
            if parent.kind != EventKind.START:
                raise OrderingContractError(f"expected test:start for parent of {event.name!r}")
            self._reported.appendleft(parent)
            prefix += f"{indent(parent.nesting)}{SPEC_SYMBOLS['arrow:right']}{parent.name}\n"

        has_children = False
        if self._reported:
            head = self._reported[0]
            if head.nesting == event.nesting and head.name == event.name:
                self._reported.popleft()
                has_children = True

        line = format_test_report(
            event,
            self.palette,
            prefix=prefix,
            pad=indent(event.nesting),
            has_children=has_children,
            show_error_details=False,
        )
        return f"{line}\n"

    def _format_failed_test_results(self) -> str:
        if not self._failed_tests:
            return ""

        palette = self.palette
        results = [
            f"\n{palette.bright_red}{SPEC_SYMBOLS['test:fail']}failing tests:{palette.reset}\n",
        ]
        for test in self._failed_tests:
            if test.file:
                results.append(f"test at {rel(test.file, self.cwd)}:{test.line}:{test.column}")
            results.append(format_test_report(test, palette))
        self._failed_tests = []
        return "\n".join(results)
