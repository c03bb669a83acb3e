"""jestreport error code registry.

Provides structured error codes with helpful messages and next steps.
Each error has:
- Code: JR-EXXX format
- Message: Human-readable description
- Next step: Actionable command or instruction
"""
from __future__ import annotations

import sys
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Optional, TextIO


class ErrorCode(Enum):
    """jestreport error codes."""

    # Input errors (E001-E099)
    E001 = "E001"  # Events file not found
    E002 = "E002"  # Invalid JSON in event stream
    E003 = "E003"  # Event schema validation failed
    E004 = "E004"  # Unknown event type
    E005 = "E005"  # Invalid config file
    E006 = "E006"  # Invalid option value

    # Stream contract errors (E100-E199)
    E100 = "E100"  # Start/result ordering contract violated

    # File/IO errors (E300-E399)
    E300 = "E300"  # Cannot read file


class OrderingContractError(AssertionError):
    """A result event does not close the most recently opened test.

    The producer broke its ordering contract; no local recovery is safe.
    """


@dataclass
class ReporterError:
    """Structured error with code, message, and next step."""

    code: ErrorCode
    message: str
    next_step: str
    details: Optional[str] = None

    def __str__(self) -> str:
        lines = [
            f"JR-{self.code.value}: {self.message}",
        ]
        if self.details:
            lines.append(f"  Details: {self.details}")
        lines.append(f"  Next step: {self.next_step}")
        return "\n".join(lines)

    def print(self, file: Optional[TextIO] = None) -> None:
        """Print the error to stderr (or specified file)."""
        print(str(self), file=file or sys.stderr)


# (message_template, next_step)
ERROR_TEMPLATES: dict[ErrorCode, tuple[str, str]] = {
    ErrorCode.E001: (
        "Events file not found: {details}",
        "Check the --events path, or pass '-' to read from stdin",
    ),
    ErrorCode.E002: (
        "Invalid JSON in event stream: {details}",
        "Emit one JSON object per line (JSONL)",
    ),
    ErrorCode.E003: (
        "Event schema validation failed",
        "Run 'jestreport validate --events <file>' to see details",
    ),
    ErrorCode.E004: (
        "Unknown event type: {details}",
        "Run 'jestreport validate --events <file>' to list accepted types",
    ),
    ErrorCode.E005: (
        "Invalid config file: {details}",
        "Check .jestreport.yaml syntax, or run 'jestreport show-config'",
    ),
    ErrorCode.E006: (
        "Invalid option value: {details}",
        "Run 'jestreport --help' for accepted values",
    ),
    ErrorCode.E100: (
        "Event ordering contract violated: {details}",
        "Check that every result event closes the most recent test:start",
    ),
    ErrorCode.E300: (
        "Cannot read file: {details}",
        "Check file permissions and path",
    ),
}


def make_error(code: ErrorCode, details: Optional[str] = None) -> ReporterError:
    """Create a ReporterError from a code with optional details.

    Args:
        code: The error code
        details: Optional details to include in the message

    Returns:
        ReporterError instance ready to print
    """
    template = ERROR_TEMPLATES.get(code, ("Unknown error", "Run 'jestreport --help'"))
    message_template, next_step = template

    if details and "{details}" in message_template:
        message = message_template.format(details=details)
    elif details:
        message = f"{message_template}: {details}"
    else:
        message = message_template.replace(": {details}", "")

    return ReporterError(
        code=code,
        message=message,
        next_step=next_step,
        details=details if "{details}" not in message_template else None,
    )


# Verbose mode flag (set by CLI)
_verbose_mode: bool = False


def set_verbose(verbose: bool) -> None:
    """Set verbose mode for error output."""
    global _verbose_mode
    _verbose_mode = verbose


def is_verbose() -> bool:
    """Check if verbose mode is enabled."""
    return _verbose_mode


def handle_exception(exc: Exception, code: ErrorCode, details: Optional[str] = None) -> None:
    """Print a formatted error; in verbose mode also the full traceback."""
    err = make_error(code, details or str(exc))
    err.print()

    if _verbose_mode:
        print("\n--- Full Traceback ---", file=sys.stderr)
        traceback.print_exception(type(exc), exc, exc.__traceback__)
