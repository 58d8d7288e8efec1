"""Collaborator interfaces implemented by site builder and fragment engine plugins."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from docbind.config.models import ProjectConfig


@runtime_checkable
class SiteBuilder(Protocol):
    """Builds, incrementally updates, deploys and scaffolds a site.

    Plugins are constructed as ``SiteBuilder(root_path, output_path)``, once
    per command invocation.
    """

    async def generate(self) -> Any: ...

    async def rebuild_affected_source_files(self, path: Path) -> Any: ...

    async def build_asset(self, path: Path) -> Any: ...

    async def remove_asset(self, path: Path) -> Any: ...

    async def read_site_config(self) -> dict[str, Any]: ...

    async def deploy(self) -> Any: ...

    async def init_site(self, root_dir: Path) -> Any: ...


@runtime_checkable
class FragmentEngine(Protocol):
    """Resolves fragment includes and renders single source files."""

    async def include_file(self, path: Path, config: ProjectConfig) -> str: ...

    async def render_file(self, path: Path, config: ProjectConfig) -> str: ...
