"""ANSI color tables and the colorize decision.

The palette is built once from the resolved colorize decision. When color is
off every code is the empty string, so renderers can interpolate codes
unconditionally.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, TextIO


# SGR code per attribute name
SGR_CODES: dict[str, int] = {
    # styles
    "reset": 0,
    "bold": 1,
    "dim": 2,
    "italic": 3,
    "underline": 4,
    "inverse": 7,
    "hidden": 8,
    "strike": 9,
    # foreground 30-37
    "black": 30,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
    "white": 37,
    # bright foreground 90-97
    "bright_black": 90,
    "bright_red": 91,
    "bright_green": 92,
    "bright_yellow": 93,
    "bright_blue": 94,
    "bright_magenta": 95,
    "bright_cyan": 96,
    "bright_white": 97,
    # background 40-47
    "bg_black": 40,
    "bg_red": 41,
    "bg_green": 42,
    "bg_yellow": 43,
    "bg_blue": 44,
    "bg_magenta": 45,
    "bg_cyan": 46,
    "bg_white": 47,
}

# Glyphs used by the jest-style tree
TREE_SYMBOLS: dict[str, str] = {
    "test:fail": "✕",
    "test:pass": "✓",
    "test:skip": "○",
    "test:todo": "✎",
    "dot": "●",
    "gt": "›",
}

# Glyphs used by the streaming spec-style output (trailing space included)
SPEC_SYMBOLS: dict[str, str] = {
    "test:fail": "✖ ",
    "test:pass": "✔ ",
    "test:diagnostic": "ℹ ",
    "test:coverage": "ℹ ",
    "arrow:right": "▶ ",
    "hyphen:minus": "﹣ ",
}

HORIZONTAL_ELLIPSIS = "…"


def should_colorize(
    stream: Optional[TextIO] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> bool:
    """Decide whether output written to ``stream`` gets ANSI codes.

    ``FORCE_COLOR`` wins when set: any value except ``"0"`` forces color on,
    ``"0"`` forces it off. Otherwise color follows TTY detection.
    """
    env = os.environ if environ is None else environ
    force = env.get("FORCE_COLOR")
    if force is not None:
        return force != "0"
    if stream is None or not hasattr(stream, "isatty"):
        return False
    try:
        is_tty = stream.isatty()
    except ValueError:
        # closed stream
        return False
    return bool(is_tty) and env.get("TERM") != "dumb"


@dataclass(frozen=True)
class Palette:
    """Resolved escape sequences, one attribute per SGR code name."""

    enabled: bool
    reset: str = ""
    bold: str = ""
    dim: str = ""
    italic: str = ""
    underline: str = ""
    inverse: str = ""
    hidden: str = ""
    strike: str = ""
    black: str = ""
    red: str = ""
    green: str = ""
    yellow: str = ""
    blue: str = ""
    magenta: str = ""
    cyan: str = ""
    white: str = ""
    bright_black: str = ""
    bright_red: str = ""
    bright_green: str = ""
    bright_yellow: str = ""
    bright_blue: str = ""
    bright_magenta: str = ""
    bright_cyan: str = ""
    bright_white: str = ""
    bg_black: str = ""
    bg_red: str = ""
    bg_green: str = ""
    bg_yellow: str = ""
    bg_blue: str = ""
    bg_magenta: str = ""
    bg_cyan: str = ""
    bg_white: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def build_palette(enabled: bool) -> Palette:
    """Build the palette for a colorize decision."""
    if not enabled:
        return Palette(enabled=False)
    codes = {name: f"\x1b[{code}m" for name, code in SGR_CODES.items()}
    return Palette(enabled=True, **codes)


PLAIN = build_palette(False)
