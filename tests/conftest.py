"""Shared test fixtures for docbind."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docbind.config.models import DocbindConfig
from docbind.interfaces import FragmentEngine


class FakeSite:
    """In-memory SiteBuilder that records every call in order.

    ``generate`` and ``rebuild_affected_source_files`` copy each source file
    into the output directory so tests can inspect built artifacts.
    """

    def __init__(self, root: Path, output: Path, site_config: dict | None = None) -> None:
        self.root = Path(root)
        self.output = Path(output)
        self.site_config = site_config if site_config is not None else {}
        self.calls: list[tuple[str, Path | None]] = []
        self.fail_on: set[Path] = set()

    def _artifact(self, path: Path) -> Path:
        return self.output / Path(path).relative_to(self.root).with_suffix(".html")

    def _check(self, path: Path) -> None:
        if Path(path) in self.fail_on:
            raise RuntimeError(f"simulated failure for {Path(path).name}")

    async def read_site_config(self) -> dict:
        self.calls.append(("read_site_config", None))
        return self.site_config

    async def generate(self) -> None:
        await asyncio.sleep(0)
        for src in sorted(self.root.glob("*.md")):
            target = self._artifact(src)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(src.read_text())
        self.calls.append(("generate", None))

    async def rebuild_affected_source_files(self, path: Path) -> None:
        self.calls.append(("rebuild_affected_source_files", Path(path)))
        await asyncio.sleep(0)
        self._check(path)
        target = self._artifact(path)
        if Path(path).exists():
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(Path(path).read_text())
        elif target.exists():
            target.unlink()

    async def build_asset(self, path: Path) -> None:
        self.calls.append(("build_asset", Path(path)))
        self._check(path)

    async def remove_asset(self, path: Path) -> None:
        self.calls.append(("remove_asset", Path(path)))
        self._check(path)

    async def deploy(self) -> None:
        self.calls.append(("deploy", None))

    async def init_site(self, root_dir: Path) -> None:
        self.calls.append(("init_site", Path(root_dir)))

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def sample_config():
    return DocbindConfig()


@pytest.fixture
def project_root(tmp_path):
    """A project with a site.json marker and a variables file."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "site.json").write_text('{"baseUrl": ""}')
    (root / "_docbind").mkdir()
    (root / "_docbind" / "variables.md").write_text(
        '<span id="year">2024</span>\n<div id="footer"><b>Docs</b> footer</div>\n'
    )
    (root / "index.md").write_text("# Home")
    return root


@pytest.fixture
def fake_site(project_root):
    return FakeSite(project_root, project_root / "_site")


@pytest.fixture
def mock_engine():
    engine = MagicMock(spec=FragmentEngine)
    engine.include_file = AsyncMock(return_value="<p>included {{baseUrl}}</p>")
    engine.render_file = AsyncMock(
        return_value='<html><body><a href="{{baseUrl}}/page.html">Page</a></body></html>'
    )
    return engine


@pytest.fixture
def fake_site_cls():
    return FakeSite
