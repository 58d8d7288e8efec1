"""Fixed ignore policy for the site watcher."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

# JetBrains IDEs write through these temp files on save
IDE_TEMP_SUFFIXES = ("___jb_tmp___", "___jb_old___")

IgnorePredicate = Callable[[Path], bool]


def _is_within(path: Path, parent: Path) -> bool:
    return path == parent or path.is_relative_to(parent)


def _spellings(path: Path) -> tuple[Path, ...]:
    """The absolute and the symlink-resolved form of ``path``."""
    return tuple({Path(os.path.abspath(path)), Path(path).resolve()})


def make_ignore_predicate(root: Path, output_dir: Path) -> IgnorePredicate:
    """Build the ignore predicate for a watched ``root``.

    Ignores the ``output_dir`` subtree, any dotfile or dot-directory below
    ``root``, and IDE temp files. Dot segments above ``root`` are not
    considered, so a project living under ``~/.work`` still gets watched.
    """
    roots = _spellings(root)
    outputs = _spellings(output_dir)

    def is_ignored(path: Path) -> bool:
        path = Path(path)
        if not path.is_absolute():
            path = roots[0] / path
        path = Path(os.path.normpath(path))
        if any(_is_within(path, out) for out in outputs):
            return True
        if path.name.endswith(IDE_TEMP_SUFFIXES):
            return True
        base = next((r for r in roots if _is_within(path, r)), None)
        parts = path.relative_to(base).parts if base is not None else path.parts
        return any(part.startswith(".") for part in parts)

    return is_ignored
