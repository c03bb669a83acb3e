from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union


@lru_cache(maxsize=None)
def indent(nesting: int) -> str:
    """Two spaces per nesting level."""
    return "  " * nesting


def relative_to(path: Union[str, Path], base: Union[str, Path]) -> str:
    """Path of ``path`` relative to ``base``; falls back to ``path`` across drives."""
    try:
        return os.path.relpath(str(path), str(base))
    except ValueError:
        return str(path)


def rel(path: Optional[Union[str, Path]], cwd: Optional[Union[str, Path]] = None) -> str:
    """Relativize absolute paths to ``cwd`` (process cwd by default) for display."""
    if path is None:
        return ""
    if not os.path.isabs(str(path)):
        return str(path)
    return relative_to(path, cwd if cwd is not None else os.getcwd())
