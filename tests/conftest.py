"""jestreport test configuration and fixtures."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

# Add src to path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

from jestreport.events.event_model import Event  # noqa: E402
from jestreport.events.parse import parse_event  # noqa: E402
from jestreport.logging_config import setup_logging  # noqa: E402


def raw_result(
    kind: str,
    name: str,
    nesting: int,
    *,
    suite: bool = False,
    duration_ms: float = 0.0,
    error: Optional[dict[str, Any]] = None,
    file: Optional[str] = None,
    skip: Any = None,
    todo: Any = None,
    line: int = 1,
    column: int = 1,
) -> dict[str, Any]:
    """Wire-format ``test:pass`` / ``test:fail`` record."""
    details: dict[str, Any] = {"duration_ms": duration_ms}
    if suite:
        details["type"] = "suite"
    if error is not None:
        details["error"] = error
    data: dict[str, Any] = {
        "name": name,
        "nesting": nesting,
        "testNumber": 1,
        "details": details,
        "line": line,
        "column": column,
    }
    if file is not None:
        data["file"] = file
    if skip is not None:
        data["skip"] = skip
    if todo is not None:
        data["todo"] = todo
    return {"type": f"test:{kind}", "data": data}


def raw_summary(
    success: bool,
    *,
    tests: int = 0,
    suites: int = 0,
    passed: int = 0,
    failed: int = 0,
    duration_ms: float = 0.0,
    file: Optional[str] = None,
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "success": success,
        "counts": {
            "tests": tests,
            "suites": suites,
            "passed": passed,
            "failed": failed,
            "cancelled": 0,
            "skipped": 0,
            "todo": 0,
            "topLevel": suites,
        },
        "duration_ms": duration_ms,
    }
    if file is not None:
        data["file"] = file
    return {"type": "test:summary", "data": data}


def comparison_error(expected: Any, actual: Any, stack: Optional[str] = None) -> dict[str, Any]:
    cause: dict[str, Any] = {
        "name": "AssertionError",
        "message": f"Expected values to be strictly equal:\n\n{actual} !== {expected}\n",
        "code": "ERR_ASSERTION",
        "expected": expected,
        "actual": actual,
        "operator": "strictEqual",
    }
    if stack is not None:
        cause["stack"] = stack
    return {"failureType": "testCodeFailure", "cause": cause, "code": "ERR_TEST_FAILURE"}


@pytest.fixture(autouse=True)
def _quiet_logging() -> None:
    """Keep structlog output off stdout while reporters are exercised directly."""
    setup_logging("WARNING")


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_events_path(fixtures_dir: Path) -> Path:
    """Return the path to sample_run.jsonl."""
    return fixtures_dir / "events" / "sample_run.jsonl"


@pytest.fixture
def make_result() -> Callable[..., Event]:
    """Factory for parsed pass/fail events."""

    def _make(kind: str, name: str, nesting: int, **kwargs: Any) -> Event:
        return parse_event(raw_result(kind, name, nesting, **kwargs))

    return _make


@pytest.fixture
def suite_scenario() -> list[Event]:
    """suite > (a passes, b fails), then the run summary."""
    raws = [
        {"type": "test:start", "data": {"name": "suite", "nesting": 0}},
        {"type": "test:start", "data": {"name": "a", "nesting": 1}},
        raw_result("pass", "a", 1, duration_ms=5),
        {"type": "test:start", "data": {"name": "b", "nesting": 1}},
        raw_result("fail", "b", 1, duration_ms=2, error=comparison_error(2, 3)),
        raw_result(
            "fail",
            "suite",
            0,
            suite=True,
            duration_ms=9,
            error={"failureType": "subtestsFailed", "message": "1 subtest failed"},
        ),
        raw_summary(False, tests=2, suites=1, passed=1, failed=1, duration_ms=12),
    ]
    return [parse_event(raw) for raw in raws]
