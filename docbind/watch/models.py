"""Pydantic models for watch events and their dispatch outcomes."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from docbind.watch.classifier import FileKind


class EventKind(str, Enum):
    add = "add"
    change = "change"
    unlink = "unlink"


class WatchEvent(BaseModel):
    """A single filesystem notification for a path under the project root."""

    model_config = ConfigDict(frozen=True)

    path: Path
    kind: EventKind


class DispatchOutcome(BaseModel):
    """Result of handling one watch event."""

    path: Path
    kind: EventKind
    file_kind: FileKind
    action: str
    ok: bool = True
    error: str | None = None
