from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class EventKind(str, Enum):
    """Wire ``type`` of a test-runner event."""

    START = "test:start"
    PASS = "test:pass"
    FAIL = "test:fail"
    STDOUT = "test:stdout"
    STDERR = "test:stderr"
    DIAGNOSTIC = "test:diagnostic"
    COVERAGE = "test:coverage"
    SUMMARY = "test:summary"
    # Runner bookkeeping, ignored by reporters
    ENQUEUE = "test:enqueue"
    DEQUEUE = "test:dequeue"
    PLAN = "test:plan"
    COMPLETE = "test:complete"
    WATCH_DRAINED = "test:watch:drained"


RESULT_KINDS = frozenset({EventKind.PASS, EventKind.FAIL})

SUBTESTS_FAILED = "subtestsFailed"


@dataclass(frozen=True)
class ErrorCause:
    """The underlying assertion error of a failing test."""

    name: Optional[str] = None
    message: Optional[str] = None
    code: Optional[str] = None
    expected: Any = None
    actual: Any = None
    operator: Optional[str] = None
    stack: Optional[str] = None
    # True when the payload carried expected/actual (they may legitimately be null)
    has_comparison: bool = False


@dataclass(frozen=True)
class TestError:
    """Error payload attached to a failing result."""

    __test__ = False

    message: Optional[str] = None
    code: Optional[str] = None
    failure_type: Optional[str] = None  # e.g. testCodeFailure, subtestsFailed
    cause: Optional[ErrorCause] = None

    @property
    def subtests_failed(self) -> bool:
        return self.failure_type == SUBTESTS_FAILED


@dataclass(frozen=True)
class TestDetails:
    """``details`` of a pass/fail result."""

    __test__ = False

    duration_ms: float = 0.0
    type: Optional[str] = None  # "suite" for containers
    error: Optional[TestError] = None

    @property
    def is_suite(self) -> bool:
        return self.type == "suite"


@dataclass(frozen=True)
class LineCount:
    line: int
    count: int


@dataclass(frozen=True)
class CoverageFile:
    """Coverage summary for one source file."""

    path: str
    covered_line_percent: float = 0.0
    covered_branch_percent: float = 0.0
    covered_function_percent: float = 0.0
    lines: list[LineCount] = field(default_factory=list)


@dataclass(frozen=True)
class CoverageTotals:
    covered_line_percent: float = 0.0
    covered_branch_percent: float = 0.0
    covered_function_percent: float = 0.0


@dataclass(frozen=True)
class CoverageSummary:
    """Payload of a ``test:coverage`` event."""

    files: list[CoverageFile] = field(default_factory=list)
    totals: CoverageTotals = field(default_factory=CoverageTotals)
    working_directory: str = ""


@dataclass(frozen=True)
class RunCounts:
    tests: int = 0
    suites: int = 0
    passed: int = 0
    failed: int = 0
    cancelled: int = 0
    skipped: int = 0
    todo: int = 0
    top_level: int = 0


@dataclass(frozen=True)
class RunSummary:
    """Payload of a ``test:summary`` event.

    ``file`` is set on per-file summaries and absent on the run-level one.
    """

    success: bool = True
    counts: RunCounts = field(default_factory=RunCounts)
    duration_ms: float = 0.0
    file: Optional[str] = None

    @property
    def is_run_level(self) -> bool:
        return self.file is None


@dataclass(frozen=True)
class Event:
    """One event of the flat, depth-tagged stream produced by a test runner."""

    kind: EventKind

    # Identity
    name: str = ""
    nesting: int = 0
    test_number: Optional[int] = None

    # Location of the test definition
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    # Status markers: None when absent, True or a reason string otherwise
    skip: Optional[Union[bool, str]] = None
    todo: Optional[Union[bool, str]] = None

    # pass/fail payload
    details: TestDetails = field(default_factory=TestDetails)

    # stdout/stderr/diagnostic payload
    message: Optional[str] = None
    level: Optional[str] = None  # info | warn | error

    # coverage/summary payload
    coverage: Optional[CoverageSummary] = None
    summary: Optional[RunSummary] = None

    @property
    def is_container(self) -> bool:
        return self.details.is_suite

    @property
    def is_result(self) -> bool:
        return self.kind in RESULT_KINDS

    @property
    def is_skipped(self) -> bool:
        return self.skip is not None

    @property
    def is_todo(self) -> bool:
        return self.todo is not None

    @property
    def error(self) -> Optional[TestError]:
        return self.details.error
