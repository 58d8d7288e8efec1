"""Source/asset classification of watched paths."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

SOURCE_EXTENSIONS = frozenset({".md", ".mbd", ".mbdf", ".html"})


class FileKind(str, Enum):
    source = "source"
    asset = "asset"


def is_source_file(path: str | Path) -> bool:
    return Path(path).suffix in SOURCE_EXTENSIONS


def classify(path: str | Path) -> FileKind:
    """Classify by extension alone; the file itself is never read."""
    return FileKind.source if is_source_file(path) else FileKind.asset
