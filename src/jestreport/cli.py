from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, Optional, TextIO

import yaml

from jestreport import __version__
from jestreport.colors import SPEC_SYMBOLS, build_palette
from jestreport.config import (
    ColorMode,
    ConfigFileError,
    ReporterConfig,
    ReporterStyle,
    load_config,
    resolve_colorize,
    resolve_columns,
)
from jestreport.errors import (
    ErrorCode,
    OrderingContractError,
    handle_exception,
    is_verbose,
    make_error,
    set_verbose,
)
from jestreport.events.event_model import EventKind
from jestreport.events.parse import EventParseError, iter_events
from jestreport.logging_config import get_logger, setup_logging
from jestreport.report.coverage_report import render_coverage_report
from jestreport.reporters import create_reporter
from jestreport.utils.paths import indent
from jestreport.validation import validate_event_lines, validate_events_file

logger = get_logger(__name__)

LOG_LEVEL_CHOICES = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# EventParseError.reason -> error code
PARSE_ERROR_CODES = {
    "json": ErrorCode.E002,
    "type": ErrorCode.E004,
    "shape": ErrorCode.E003,
}


class CommandFailed(Exception):
    """A command already reported its error; exit with ``exit_code``."""

    def __init__(self, exit_code: int = 1):
        super().__init__(exit_code)
        self.exit_code = exit_code


def _load_cli_config(args: argparse.Namespace) -> ReporterConfig:
    """Resolve configuration for a command, mapping failures to error codes."""
    overrides = {
        "columns": getattr(args, "columns", None),
        "cwd": getattr(args, "cwd", None),
        "log_level": getattr(args, "log_level", None),
    }
    try:
        config = load_config(
            reporter=getattr(args, "reporter", None),
            color=getattr(args, "color", None),
            config_file=getattr(args, "config", None),
            cli_overrides=overrides,
        )
    except FileNotFoundError as e:
        handle_exception(e, ErrorCode.E005, str(e))
        raise CommandFailed() from e
    except ConfigFileError as e:
        handle_exception(e, ErrorCode.E005, str(e))
        raise CommandFailed() from e
    except ValueError as e:
        handle_exception(e, ErrorCode.E006, str(e))
        raise CommandFailed() from e

    setup_logging(config.log_level, config.log_format.value)
    return config


def _open_events(events: str) -> Iterable[str]:
    """Lines of the events file, or of stdin for ``-``."""
    if events == "-":
        return sys.stdin

    path = Path(events)
    if not path.exists():
        make_error(ErrorCode.E001, str(path)).print()
        raise CommandFailed()
    try:
        return path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as e:
        handle_exception(e, ErrorCode.E300, f"{path}: {e}")
        raise CommandFailed() from e


def _check_schema(lines: list[str], source: str) -> None:
    result = validate_event_lines(lines, source)
    if not result.valid:
        make_error(ErrorCode.E003).print()
        print(result.summary(), file=sys.stderr)
        raise CommandFailed()


def _write(out: TextIO, chunk: Optional[str]) -> None:
    if chunk:
        out.write(chunk)
        out.flush()


def _cmd_render(args: argparse.Namespace) -> int:
    """Stream events through the configured reporter."""
    config = _load_cli_config(args)
    lines = _open_events(args.events)
    if args.validate:
        lines = list(lines)
        _check_schema(lines, args.events)

    out = sys.stdout
    palette = build_palette(resolve_colorize(config, out))
    reporter = create_reporter(
        config.reporter,
        palette,
        cwd=config.cwd,
        columns=resolve_columns(config, out),
        coverage_table=config.coverage_table,
    )
    logger.debug("render_started", reporter=config.reporter.value, color=palette.enabled)

    failed = False
    try:
        for event in iter_events(lines):
            summary = event.summary
            if summary is not None and summary.is_run_level and not summary.success:
                failed = True
            _write(out, reporter.handle(event))
    except EventParseError as e:
        handle_exception(e, PARSE_ERROR_CODES[e.reason], str(e))
        raise CommandFailed() from e
    except OrderingContractError as e:
        handle_exception(e, ErrorCode.E100, str(e))
        raise CommandFailed() from e

    _write(out, reporter.flush())
    return 1 if failed else 0


def _cmd_coverage(args: argparse.Namespace) -> int:
    """Render only the coverage reports of an event stream."""
    config = _load_cli_config(args)
    lines = _open_events(args.events)

    out = sys.stdout
    palette = build_palette(resolve_colorize(config, out))
    columns = resolve_columns(config, out)
    table = config.coverage_table and not args.no_table

    found = 0
    try:
        for event in iter_events(lines):
            if event.kind != EventKind.COVERAGE or event.coverage is None:
                continue
            found += 1
            _write(out, render_coverage_report(
                event.coverage,
                palette=palette,
                pad=indent(event.nesting),
                symbol=SPEC_SYMBOLS["test:coverage"],
                color=palette.blue,
                table=table,
                columns=columns,
            ))
    except EventParseError as e:
        handle_exception(e, PARSE_ERROR_CODES[e.reason], str(e))
        raise CommandFailed() from e

    if not found:
        print("No test:coverage events found.", file=sys.stderr)
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    """Validate an events JSONL file against the event schema."""
    if args.events == "-":
        result = validate_event_lines(sys.stdin, "<stdin>")
    else:
        result = validate_events_file(args.events)
    print(result.summary())

    # Return 0 if valid, 1 if invalid
    return 0 if result.valid else 1


def _cmd_show_config(args: argparse.Namespace) -> int:
    """Print the resolved configuration as YAML."""
    config = _load_cli_config(args)
    sys.stdout.write(yaml.safe_dump(config.to_dict(), sort_keys=False))
    return 0


def _add_config_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        help="Path to config file (default: discover .jestreport.yaml upwards)",
    )
    parser.add_argument(
        "--color",
        choices=[m.value for m in ColorMode],
        help="Color mode (default: auto, honours FORCE_COLOR)",
    )
    parser.add_argument(
        "--columns",
        type=int,
        help="Terminal width for the coverage table (default: detect)",
    )
    parser.add_argument(
        "--cwd",
        help="Directory file paths are shown relative to (default: current directory)",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="jestreport",
        description="Render test runner event streams as Jest-style or spec-style reports",
    )

    # Global flags
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show full tracebacks on errors",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    p.add_argument(
        "--log-level",
        dest="log_level",
        choices=LOG_LEVEL_CHOICES,
        help="Log level for diagnostics on stderr (default: WARNING)",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    # render
    p_render = sub.add_parser(
        "render",
        help="Render an event stream with the jest or spec reporter",
    )
    p_render.add_argument(
        "--events",
        default="-",
        help="Path to a JSONL events file, or '-' for stdin (default: -)",
    )
    p_render.add_argument(
        "--reporter",
        choices=[m.value for m in ReporterStyle],
        help="Reporter style (default: jest)",
    )
    _add_config_args(p_render)
    p_render.add_argument(
        "--validate",
        action="store_true",
        help="Schema-check every event before rendering",
    )
    p_render.set_defaults(func=_cmd_render)

    # coverage
    p_cov = sub.add_parser(
        "coverage",
        help="Render only the coverage report(s) of an event stream",
    )
    p_cov.add_argument(
        "--events",
        default="-",
        help="Path to a JSONL events file, or '-' for stdin (default: -)",
    )
    p_cov.add_argument(
        "--no-table",
        dest="no_table",
        action="store_true",
        help="Print the plain (untabulated) coverage report",
    )
    _add_config_args(p_cov)
    p_cov.set_defaults(func=_cmd_coverage)

    # validate
    p_val = sub.add_parser(
        "validate",
        help="Validate a JSONL events file against the event schema",
    )
    p_val.add_argument(
        "--events",
        required=True,
        help="Path to a JSONL events file, or '-' for stdin",
    )
    p_val.set_defaults(func=_cmd_validate)

    # show-config
    p_cfg = sub.add_parser(
        "show-config",
        help="Print the resolved configuration as YAML",
    )
    p_cfg.add_argument(
        "--reporter",
        choices=[m.value for m in ReporterStyle],
        help="Reporter style override",
    )
    _add_config_args(p_cfg)
    p_cfg.set_defaults(func=_cmd_show_config)

    return p


def main(argv: Optional[list[str]] = None) -> None:
    # Force UTF-8 output on Windows to handle the report glyphs
    import io
    if sys.platform == "win32":
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")
        sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding="utf-8", errors="replace")

    args = build_parser().parse_args(argv)

    # Set verbose mode for error handling
    set_verbose(args.verbose)
    setup_logging(args.log_level or "WARNING")

    try:
        rc = args.func(args)
        raise SystemExit(rc)
    except SystemExit:
        raise
    except CommandFailed as e:
        raise SystemExit(e.exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        raise SystemExit(130)
    except BrokenPipeError:
        # downstream pager or head closed the pipe
        raise SystemExit(0)
    except OSError as e:
        handle_exception(e, ErrorCode.E300, str(e))
        raise SystemExit(1)
    except Exception as e:
        # Generic exception handler
        if is_verbose():
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
            print("Run with --verbose for full traceback", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
