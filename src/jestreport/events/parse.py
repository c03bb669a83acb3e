"""Turn raw runner output (dicts or JSONL lines) into :class:`Event` objects."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from jestreport.events.event_model import (
    CoverageFile,
    CoverageSummary,
    CoverageTotals,
    ErrorCause,
    Event,
    EventKind,
    LineCount,
    RunCounts,
    RunSummary,
    TestDetails,
    TestError,
)


# Field name mappings: canonical name -> accepted wire spellings
FIELD_MAPPINGS = {
    "duration_ms": ["duration_ms", "durationMs", "duration"],
    "test_number": ["testNumber", "test_number"],
    "failure_type": ["failureType", "failure_type"],
    "covered_line_percent": ["coveredLinePercent", "covered_line_percent"],
    "covered_branch_percent": ["coveredBranchPercent", "covered_branch_percent"],
    "covered_function_percent": ["coveredFunctionPercent", "covered_function_percent"],
    "working_directory": ["workingDirectory", "working_directory"],
    "top_level": ["topLevel", "top_level"],
}


class EventParseError(ValueError):
    """Raised when a raw record cannot be turned into an Event."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        reason: str = "shape",
    ):
        self.line_number = line_number
        # "json", "type" or "shape"
        self.reason = reason
        prefix = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{prefix}{message}")


def _get_field(data: dict[str, Any], canonical: str, default: Any = None) -> Any:
    """Look up a field by its canonical name or any accepted alias."""
    for key in FIELD_MAPPINGS.get(canonical, [canonical]):
        if key in data:
            return data[key]
    return default


def _status_marker(value: Any) -> Any:
    """skip/todo: absent or false means not set, otherwise True or a reason."""
    if value is None or value is False:
        return None
    return value


def _parse_cause(raw: Any) -> Optional[ErrorCause]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        return ErrorCause(message=str(raw))
    return ErrorCause(
        name=raw.get("name"),
        message=raw.get("message"),
        code=raw.get("code"),
        expected=raw.get("expected"),
        actual=raw.get("actual"),
        operator=raw.get("operator"),
        stack=raw.get("stack"),
        has_comparison="expected" in raw or "actual" in raw,
    )


def _parse_error(raw: Any) -> Optional[TestError]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        return TestError(message=str(raw))
    return TestError(
        message=raw.get("message"),
        code=raw.get("code"),
        failure_type=_get_field(raw, "failure_type"),
        cause=_parse_cause(raw.get("cause")),
    )


def _parse_details(raw: Any) -> TestDetails:
    if not isinstance(raw, dict):
        return TestDetails()
    duration = _get_field(raw, "duration_ms", 0.0)
    return TestDetails(
        duration_ms=float(duration or 0.0),
        type=raw.get("type"),
        error=_parse_error(raw.get("error")),
    )


def _parse_coverage_file(raw: dict[str, Any]) -> CoverageFile:
    return CoverageFile(
        path=raw.get("path", ""),
        covered_line_percent=float(_get_field(raw, "covered_line_percent", 0.0)),
        covered_branch_percent=float(_get_field(raw, "covered_branch_percent", 0.0)),
        covered_function_percent=float(_get_field(raw, "covered_function_percent", 0.0)),
        lines=[
            LineCount(line=int(entry["line"]), count=int(entry.get("count", 0)))
            for entry in raw.get("lines", [])
        ],
    )


def _parse_coverage(raw: Any) -> Optional[CoverageSummary]:
    if not isinstance(raw, dict):
        return None
    totals = raw.get("totals") or {}
    return CoverageSummary(
        files=[_parse_coverage_file(f) for f in raw.get("files", [])],
        totals=CoverageTotals(
            covered_line_percent=float(_get_field(totals, "covered_line_percent", 0.0)),
            covered_branch_percent=float(_get_field(totals, "covered_branch_percent", 0.0)),
            covered_function_percent=float(_get_field(totals, "covered_function_percent", 0.0)),
        ),
        working_directory=_get_field(raw, "working_directory", ""),
    )


def _parse_summary(data: dict[str, Any]) -> RunSummary:
    counts = data.get("counts") or {}
    return RunSummary(
        success=bool(data.get("success", True)),
        counts=RunCounts(
            tests=int(counts.get("tests", 0)),
            suites=int(counts.get("suites", 0)),
            passed=int(counts.get("passed", 0)),
            failed=int(counts.get("failed", 0)),
            cancelled=int(counts.get("cancelled", 0)),
            skipped=int(counts.get("skipped", 0)),
            todo=int(counts.get("todo", 0)),
            top_level=int(_get_field(counts, "top_level", 0)),
        ),
        duration_ms=float(_get_field(data, "duration_ms", 0.0) or 0.0),
        file=data.get("file"),
    )


def parse_event(raw: dict[str, Any]) -> Event:
    """Parse one ``{"type": ..., "data": {...}}`` record.

    Raises:
        EventParseError: If the record has no known ``type`` or a field
            has the wrong shape.
    """
    if not isinstance(raw, dict):
        raise EventParseError(f"event must be a JSON object, got {type(raw).__name__}")

    type_value = raw.get("type")
    try:
        kind = EventKind(type_value)
    except ValueError as e:
        raise EventParseError(f"unknown event type: {type_value!r}", reason="type") from e

    data = raw.get("data") or {}
    if not isinstance(data, dict):
        raise EventParseError(f"'data' of {type_value} must be an object")

    try:
        return Event(
            kind=kind,
            name=str(data.get("name", "")),
            nesting=int(data.get("nesting", 0) or 0),
            test_number=_get_field(data, "test_number"),
            file=data.get("file"),
            line=data.get("line"),
            column=data.get("column"),
            skip=_status_marker(data.get("skip")),
            todo=_status_marker(data.get("todo")),
            details=_parse_details(data.get("details")),
            message=data.get("message"),
            level=data.get("level"),
            coverage=_parse_coverage(data.get("summary")) if kind == EventKind.COVERAGE else None,
            summary=_parse_summary(data) if kind == EventKind.SUMMARY else None,
        )
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        raise EventParseError(f"malformed {type_value} event: {e}") from e


def iter_events(lines: Iterable[str]) -> Iterator[Event]:
    """Lazily parse JSONL lines; blank lines are skipped.

    Raises:
        EventParseError: With the 1-based line number of the offending line.
    """
    for line_number, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            raw = json.loads(line)
        except json.JSONDecodeError as e:
            raise EventParseError(f"invalid JSON: {e}", line_number, reason="json") from e
        try:
            yield parse_event(raw)
        except EventParseError as e:
            raise EventParseError(str(e), line_number, reason=e.reason) from e


def load_events_jsonl(path: Path) -> list[Event]:
    """Load all events of a JSONL file."""
    return list(iter_events(path.read_text(encoding="utf-8").splitlines()))
