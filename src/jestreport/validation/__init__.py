"""Schema validation for test runner event streams (JSONL)."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import jsonschema

EVENT_SCHEMA = "event.schema.json"


@dataclass
class ValidationError:
    """A single validation error."""

    path: str
    message: str
    line_number: int | None = None  # For JSONL files


@dataclass
class ValidationResult:
    """Result of validating a file or a single event."""

    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    file_path: str = ""
    events_checked: int = 0

    def summary(self) -> str:
        """Return a human-readable summary."""
        if self.valid:
            return f"✓ {self.file_path}: Valid ({self.events_checked} event(s))"
        lines = [f"✗ {self.file_path}: {len(self.errors)} error(s)"]
        for err in self.errors:
            if err.line_number is not None:
                lines.append(f"  Line {err.line_number}: {err.path} - {err.message}")
            else:
                lines.append(f"  {err.path} - {err.message}")
        return "\n".join(lines)


def _get_schema_dir() -> Path:
    """Get the directory containing schemas (shipped as package data)."""
    return Path(__file__).parent.parent / "schemas"


@lru_cache(maxsize=None)
def _load_schema(schema_name: str) -> dict[str, Any]:
    """Load a JSON schema by name."""
    schema_path = _get_schema_dir() / schema_name
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")
    return json.loads(schema_path.read_text(encoding="utf-8"))


def _format_path(path: list[Any]) -> str:
    """Format a jsonschema path as a dotted string."""
    if not path:
        return "$"
    parts = ["$"]
    for p in path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(f".{p}")
    return "".join(parts)


def _event_validator() -> jsonschema.Draft202012Validator:
    return jsonschema.Draft202012Validator(_load_schema(EVENT_SCHEMA))


def _collect_errors(
    validator: jsonschema.Draft202012Validator,
    instance: Any,
    line_number: int | None = None,
) -> list[ValidationError]:
    errors = [
        ValidationError(
            path=_format_path(list(err.absolute_path)),
            message=err.message,
            line_number=line_number,
        )
        for err in validator.iter_errors(instance)
    ]
    return sorted(errors, key=lambda e: e.path)


def validate_event_dict(event: dict[str, Any]) -> ValidationResult:
    """Validate a single raw event against event.schema.json.

    Useful for programmatic validation without file I/O.

    Args:
        event: Raw ``{"type": ..., "data": {...}}`` dictionary.

    Returns:
        ValidationResult with any errors found.
    """
    result = ValidationResult(valid=True, file_path="<dict>", events_checked=1)
    errors = _collect_errors(_event_validator(), event)
    if errors:
        result.valid = False
        result.errors.extend(errors)
    return result


def validate_event_lines(lines: Iterable[str], file_path: str = "<stream>") -> ValidationResult:
    """Validate JSONL lines; each non-blank line is one event."""
    result = ValidationResult(valid=True, file_path=file_path)
    validator = _event_validator()

    for line_num, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue

        result.events_checked += 1
        try:
            event = json.loads(line)
        except json.JSONDecodeError as e:
            result.valid = False
            result.errors.append(ValidationError(
                path="$",
                message=f"Invalid JSON: {e}",
                line_number=line_num,
            ))
            continue

        errors = _collect_errors(validator, event, line_num)
        if errors:
            result.valid = False
            result.errors.extend(errors)

    return result


def validate_events_file(events_path: str | Path) -> ValidationResult:
    """Validate an events JSONL file against event.schema.json.

    Each line is validated as a separate event.

    Args:
        events_path: Path to the events JSONL file.

    Returns:
        ValidationResult with any errors found.
    """
    events_path = Path(events_path)
    result = ValidationResult(valid=True, file_path=str(events_path))

    if not events_path.exists():
        result.valid = False
        result.errors.append(ValidationError(
            path="$",
            message=f"File not found: {events_path}",
        ))
        return result

    try:
        content = events_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        result.valid = False
        result.errors.append(ValidationError(
            path="$",
            message=f"Cannot read file: {e}",
        ))
        return result

    if not content.strip():
        result.valid = False
        result.errors.append(ValidationError(
            path="$",
            message="Events file is empty",
            line_number=0,
        ))
        return result

    return validate_event_lines(content.splitlines(), str(events_path))
