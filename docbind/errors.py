"""Error taxonomy for docbind commands and the watch loop."""

from __future__ import annotations

from pathlib import Path


class DocbindError(Exception):
    """Base class for every error raised by docbind itself."""


class ConfigNotFound(DocbindError):
    """No ancestor of the start directory contains the site config marker."""

    def __init__(self, start_dir: Path, marker: str) -> None:
        self.start_dir = start_dir
        self.marker = marker
        super().__init__(f"No {marker} found in {start_dir} or any parent directory")


class VariableFileUnreadable(DocbindError):
    """The user variables file could not be read. Recoverable."""

    def __init__(self, path: Path, cause: Exception) -> None:
        self.path = path
        super().__init__(f"Could not read variables file {path}: {cause}")
        self.__cause__ = cause


class FragmentResolutionFailure(DocbindError):
    """The fragment engine failed to include or render a file."""

    def __init__(self, path: Path, operation: str, cause: Exception) -> None:
        self.path = path
        self.operation = operation
        super().__init__(f"{operation} failed for {path}: {cause}")
        self.__cause__ = cause


class RebuildFailure(DocbindError):
    """A rebuild triggered by a single watch event failed."""

    def __init__(self, path: Path, action: str, cause: Exception) -> None:
        self.path = path
        self.action = action
        super().__init__(f"{action} failed for {path}: {cause}")
        self.__cause__ = cause


class ServerBindFailure(DocbindError):
    """The preview server could not bind its listening socket."""

    def __init__(self, host: str, port: int, cause: Exception) -> None:
        self.host = host
        self.port = port
        super().__init__(f"Could not bind preview server to {host}:{port}: {cause}")
        self.__cause__ = cause


class OutputWriteFailure(DocbindError):
    """A command result could not be written to its output path."""

    def __init__(self, path: Path, cause: Exception) -> None:
        self.path = path
        super().__init__(f"Could not write {path}: {cause}")
        self.__cause__ = cause
