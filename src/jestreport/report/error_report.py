"""Failure detail blocks: ancestor header, expected/received and a source excerpt."""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Union
from urllib.parse import unquote, urlparse

from jestreport.colors import TREE_SYMBOLS, Palette
from jestreport.tree.node_model import ExecutionNode
from jestreport.utils.paths import rel

SourceReader = Callable[[Path], str]

# (file:///abs/path.js:12:5) or (/abs/path.js:12:5)
STACK_LOCATION_RE = re.compile(r"((?:file://)?/[^\s():]+):(\d+):(\d+)")

CONTEXT_LINES_BEFORE = 2
CONTEXT_LINES_AFTER = 2


@dataclass(frozen=True)
class SourceLocation:
    """Failure location, 0-based line and column."""

    path: Path
    line: int
    column: int


def read_source_file(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def parse_stack_location(stack: Optional[str]) -> Optional[SourceLocation]:
    """First absolute file frame of a stack trace, or None."""
    if not stack:
        return None
    match = STACK_LOCATION_RE.search(stack)
    if not match:
        return None
    location = match.group(1)
    if location.startswith("file:"):
        location = unquote(urlparse(location).path)
    return SourceLocation(
        path=Path(location),
        line=int(match.group(2)) - 1,
        column=int(match.group(3)) - 1,
    )


def get_context(
    path: Path,
    line: int,
    read_source: SourceReader = read_source_file,
) -> list[tuple[int, str]]:
    """Up to five ``(0-based index, text)`` pairs centred on ``line``.

    Any read failure yields an empty list.
    """
    try:
        text = read_source(path)
    except (OSError, UnicodeDecodeError):
        return []

    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    start = max(0, line - CONTEXT_LINES_BEFORE)
    end = min(len(lines), line + CONTEXT_LINES_AFTER + 1)
    return [(index, lines[index]) for index in range(start, end)]


def _spaces_except_tabs(text: str) -> str:
    return re.sub(r"[^\t]", " ", text)


def format_source_excerpt(
    stack: Optional[str],
    palette: Palette,
    cwd: Optional[Union[str, Path]] = None,
    read_source: SourceReader = read_source_file,
    default_indent: int = 4,
) -> str:
    """Numbered source lines around the failure with a caret under the column."""
    location = parse_stack_location(stack)
    if location is None:
        return ""

    display_path = rel(location.path, cwd)
    context = get_context(location.path, location.line, read_source)
    width = max((len(str(index + 1)) for index, _ in context), default=0)
    pad = " " * default_indent
    gutter = f"{palette.bright_black}{{number}} | {palette.reset}"

    meta: list[str] = []
    for index, text in context:
        marker = f"{palette.red}{palette.bold}>{palette.reset} " if index == location.line else "  "
        meta.append(f"{pad}{marker}{gutter.format(number=str(index + 1).rjust(width))}{text}")
        if index == location.line:
            caret = f"{palette.red}{palette.bold}^{palette.reset}"
            meta.append(
                f"{pad}  {gutter.format(number=' ' * width)}"
                f"{_spaces_except_tabs(text[:location.column])}{caret}"
            )

    meta.append("")
    meta.append(
        f"{pad}  at ({palette.cyan}{display_path}{palette.reset}"
        f":{location.line + 1}:{location.column + 1})"
    )
    return "\n".join(meta)


def format_header(node: ExecutionNode, palette: Palette, indent: int = 2) -> str:
    """``● suite › nested › test`` from the full ancestor chain."""
    separator = f" {TREE_SYMBOLS['gt']} "
    return (
        f"{' ' * indent}{palette.bold}{palette.red}{TREE_SYMBOLS['dot']} "
        f"{separator.join(node.path_names())}{palette.reset}"
    )


def _display_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def format_error(
    node: ExecutionNode,
    palette: Palette,
    cwd: Optional[Union[str, Path]] = None,
    read_source: SourceReader = read_source_file,
) -> str:
    """Render the detail block for one failing test."""
    error = node.event.error
    cause = error.cause if error else None
    body = " " * 4

    lines = [format_header(node, palette, 2), ""]
    if cause is not None and cause.has_comparison:
        lines.append(f"{body}Expected: {palette.green}{_display_value(cause.expected)}{palette.reset}")
        lines.append(f"{body}Received: {palette.red}{_display_value(cause.actual)}{palette.reset}")
    else:
        message = (cause.message if cause else None) or (error.message if error else None) or ""
        lines.extend(f"{body}{line}" for line in message.splitlines())
    lines.append("")
    lines.append(
        format_source_excerpt(
            cause.stack if cause else None,
            palette,
            cwd=cwd,
            read_source=read_source,
            default_indent=4,
        )
    )
    lines.append("")
    return "\n".join(lines)
