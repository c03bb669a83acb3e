"""jestreport configuration management.

Handles:
- Reporter style (jest vs spec) and color mode
- .jestreport.yaml discovery with precedence: CLI > config file > env vars
- Runtime decisions (colorize, terminal width) derived from the config
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, TextIO

import yaml

from jestreport.colors import should_colorize
from jestreport.logging_config import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAME = ".jestreport.yaml"

CONFIG_KEYS = {
    "reporter",
    "color",
    "columns",
    "coverage_table",
    "log_level",
    "log_format",
    "cwd",
}

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigFileError(ValueError):
    """The config file exists but cannot be used."""


class ReporterStyle(str, Enum):
    """Which reporter renders the stream."""

    JEST = "jest"
    SPEC = "spec"


class ColorMode(str, Enum):
    """How the colorize decision is made."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


class LogFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


@dataclass
class ReporterConfig:
    """jestreport runtime configuration."""

    reporter: ReporterStyle = ReporterStyle.JEST
    color: ColorMode = ColorMode.AUTO
    columns: int | None = None
    coverage_table: bool = True
    cwd: Path = Path(".")
    log_level: str = "WARNING"
    log_format: LogFormat = LogFormat.CONSOLE
    config_file_path: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary (YAML-safe)."""
        return {
            "reporter": self.reporter.value,
            "color": self.color.value,
            "columns": self.columns,
            "coverage_table": self.coverage_table,
            "cwd": str(self.cwd),
            "log_level": self.log_level,
            "log_format": self.log_format.value,
            "config_file": str(self.config_file_path) if self.config_file_path else None,
        }


def parse_config_file(config_file: Path) -> dict[str, Any]:
    """Parse a .jestreport.yaml file into a dictionary.

    An empty file yields ``{}``.

    Raises:
        ConfigFileError: If the YAML is malformed, not a mapping, or has unknown keys.
    """
    try:
        with open(config_file, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigFileError(f"Invalid YAML in config file {config_file}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(
            f"Config file {config_file} must contain a mapping, got {type(data).__name__}"
        )

    unknown = sorted(set(data) - CONFIG_KEYS)
    if unknown:
        raise ConfigFileError(
            f"Unknown key(s) in config file {config_file}: {', '.join(unknown)}. "
            f"Allowed: {', '.join(sorted(CONFIG_KEYS))}"
        )
    return data


def _find_config_file(start: Path | None = None) -> Path | None:
    """Find .jestreport.yaml by walking up the directory tree.

    Stops at git root, home directory, or filesystem root.
    Returns None if not found.
    """
    current = (start or Path.cwd()).resolve()

    try:
        home = Path.home()
    except RuntimeError:
        home = None

    for _ in range(20):  # Max depth
        candidate = current / CONFIG_FILE_NAME
        if candidate.exists():
            return candidate

        if home and current == home:
            break
        if current == current.parent:
            break

        # Stop at git root (but check the config file first)
        if (current / ".git").exists():
            break

        current = current.parent

    return None


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean for {key}: {value!r}")


def _parse_columns(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        columns = int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid columns value: {value!r}") from e
    if columns <= 0:
        raise ValueError(f"columns must be positive, got {columns}")
    return columns


def _parse_enum(enum_cls: type[Enum], value: Any, key: str) -> Any:
    try:
        return enum_cls(str(value).lower())
    except ValueError as e:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Invalid {key}: {value!r} (expected one of: {allowed})") from e


def _parse_log_level(value: Any) -> str:
    level = str(value).upper()
    if level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid log_level: {value!r} (expected one of: {', '.join(sorted(LOG_LEVELS))})"
        )
    return level


def load_config(
    reporter: str | None = None,
    color: str | None = None,
    config_file: str | Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ReporterConfig:
    """Load configuration with precedence: CLI > config file > env vars.

    Args:
        reporter: Explicit reporter style override (jest or spec)
        color: Explicit color mode override (auto, always, never)
        config_file: Path to a config file; otherwise discovered by walking up
        cli_overrides: Additional CLI-provided overrides (columns, cwd, ...)
        environ: Environment to read (default: os.environ)

    Returns:
        Loaded ReporterConfig instance

    Raises:
        ValueError: If any layer holds an invalid value
        FileNotFoundError: If an explicit config file does not exist
    """
    env = os.environ if environ is None else environ
    cli_overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    # Step 1: Environment variables as base
    values: dict[str, Any] = {}
    env_keys = {
        "JESTREPORT_REPORTER": "reporter",
        "JESTREPORT_COLOR": "color",
        "JESTREPORT_LOG_LEVEL": "log_level",
        "JESTREPORT_LOG_FORMAT": "log_format",
    }
    for env_key, key in env_keys.items():
        if env.get(env_key):
            values[key] = env[env_key]

    # Step 2: Config file (overrides env vars)
    config_file_path: Path | None = None
    explicit = config_file or env.get("JESTREPORT_CONFIG")
    if explicit:
        config_file_path = Path(explicit)
        if not config_file_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_file_path}")
    else:
        start = Path(cli_overrides["cwd"]) if "cwd" in cli_overrides else None
        config_file_path = _find_config_file(start)

    if config_file_path is not None:
        values.update(parse_config_file(config_file_path))

    # Step 3: CLI (overrides everything)
    values.update(cli_overrides)
    if reporter:
        values["reporter"] = reporter
    if color:
        values["color"] = color

    config = ReporterConfig(
        reporter=_parse_enum(ReporterStyle, values.get("reporter", "jest"), "reporter"),
        color=_parse_enum(ColorMode, values.get("color", "auto"), "color"),
        columns=_parse_columns(values.get("columns")),
        coverage_table=_parse_bool(values.get("coverage_table", True), "coverage_table"),
        cwd=Path(values.get("cwd") or Path.cwd()),
        log_level=_parse_log_level(values.get("log_level", "WARNING")),
        log_format=_parse_enum(LogFormat, values.get("log_format", "console"), "log_format"),
        config_file_path=config_file_path,
    )
    logger.debug(
        "config_loaded",
        reporter=config.reporter.value,
        color=config.color.value,
        config_file=str(config_file_path) if config_file_path else None,
    )
    return config


def resolve_colorize(
    config: ReporterConfig,
    stream: Optional[TextIO] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> bool:
    """Turn the color mode into a yes/no for ``stream``.

    ``auto`` defers to :func:`jestreport.colors.should_colorize`, so
    ``FORCE_COLOR`` still applies.
    """
    if config.color == ColorMode.ALWAYS:
        return True
    if config.color == ColorMode.NEVER:
        return False
    return should_colorize(stream, environ)


def resolve_columns(
    config: ReporterConfig,
    stream: Optional[TextIO] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int | None:
    """Terminal width for the coverage table, or None when unconstrained.

    An explicit ``columns`` wins, then a positive ``COLUMNS`` variable. A TTY
    stream reports its size; a redirected stream is unconstrained.
    """
    if config.columns is not None:
        return config.columns
    env = os.environ if environ is None else environ
    if env.get("COLUMNS", "").isdigit() and int(env["COLUMNS"]) > 0:
        return int(env["COLUMNS"])
    if stream is None or not stream.isatty():
        return None
    return shutil.get_terminal_size().columns
