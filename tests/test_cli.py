"""Tests for the docbind CLI commands."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from docbind import __version__
from docbind.cli import app
from docbind.log import JsonFormatter

runner = CliRunner()


def _flat(output: str) -> str:
    """Collapse the line wrapping rich applies to long messages."""
    return " ".join(output.split())


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr("docbind.config.loader.Path.home", lambda: home)


@pytest.fixture()
def engine_loader(mock_engine):
    """Patch the plugin loader so the fragment engine is ``mock_engine``."""
    with patch("docbind.cli.PluginLoader") as loader_cls:
        loader_cls.return_value.load_fragment_engine.return_value = MagicMock(
            return_value=mock_engine
        )
        yield loader_cls


@pytest.fixture()
def site_loader(fake_site_cls):
    """Patch the plugin loader to build FakeSite instances; yields the built sites."""
    built: list = []

    def factory(root, output):
        site = fake_site_cls(root, output)
        built.append(site)
        return site

    with patch("docbind.cli.PluginLoader") as loader_cls:
        loader_cls.return_value.load_site_builder.return_value = factory
        yield built


# ---------------------------------------------------------------------------
# docbind include / render
# ---------------------------------------------------------------------------


class TestIncludeCommand:
    def test_prints_result(self, project_root, monkeypatch, engine_loader, mock_engine):
        monkeypatch.chdir(project_root)
        result = runner.invoke(app, ["include", "index.md"])

        assert result.exit_code == 0
        assert "<p>included {{baseUrl}}</p>" in result.output
        path_arg, _ = mock_engine.include_file.call_args.args
        assert path_arg == (project_root / "index.md").resolve()

    def test_writes_output_file(self, project_root, monkeypatch, engine_loader):
        monkeypatch.chdir(project_root)
        result = runner.invoke(app, ["include", "index.md", "-o", "out/result.html"])

        assert result.exit_code == 0
        assert (project_root / "out" / "result.html").read_text() == "<p>included {{baseUrl}}</p>"

    def test_outside_project_fails_with_no_writes(self, tmp_path, monkeypatch, engine_loader, mock_engine):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "a.md").write_text("# A")
        monkeypatch.chdir(outside)

        result = runner.invoke(app, ["include", "a.md", "-o", "result.html"])

        assert result.exit_code == 1
        assert "No site.json found" in _flat(result.output)
        mock_engine.include_file.assert_not_called()
        assert sorted(p.name for p in outside.iterdir()) == ["a.md"]

    def test_engine_error_reported(self, project_root, monkeypatch, engine_loader, mock_engine):
        mock_engine.include_file.side_effect = ValueError("unknown fragment")
        monkeypatch.chdir(project_root)

        result = runner.invoke(app, ["include", "index.md"])

        assert result.exit_code == 1
        assert "Error processing fragment include" in _flat(result.output)
        assert "unknown fragment" in _flat(result.output)

    def test_outside_project_reported_before_plugin_lookup(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with patch("docbind.plugins.loader.importlib.metadata.entry_points", return_value=[]):
            result = runner.invoke(app, ["include", "a.md"])

        assert result.exit_code == 1
        assert "No site.json found" in _flat(result.output)
        assert "No fragment_engine plugin found" not in _flat(result.output)

    def test_missing_plugin(self, project_root, monkeypatch):
        monkeypatch.chdir(project_root)
        with patch("docbind.plugins.loader.importlib.metadata.entry_points", return_value=[]):
            result = runner.invoke(app, ["include", "index.md"])

        assert result.exit_code == 1
        assert "No fragment_engine plugin found" in _flat(result.output)


class TestRenderCommand:
    def test_renders_with_resolved_base_url(self, project_root, monkeypatch, engine_loader):
        monkeypatch.chdir(project_root)
        result = runner.invoke(app, ["render", "index.md", "-o", "page.html"])

        assert result.exit_code == 0
        rendered = (project_root / "page.html").read_text()
        assert f'href="{project_root.resolve()}/page.html"' in rendered

    def test_template_syntax_error_exits_1(self, project_root, monkeypatch, engine_loader, mock_engine):
        mock_engine.render_file.return_value = "<pre>{% raw</pre>"
        monkeypatch.chdir(project_root)

        result = runner.invoke(app, ["render", "index.md"])

        assert result.exit_code == 1
        assert "Error processing file rendering" in _flat(result.output)
        assert isinstance(result.exception, SystemExit)

    def test_output_is_directory_exits_1(self, project_root, monkeypatch, engine_loader):
        (project_root / "out").mkdir()
        monkeypatch.chdir(project_root)

        result = runner.invoke(app, ["render", "index.md", "-o", "out"])

        assert result.exit_code == 1
        assert "Could not write" in _flat(result.output)
        assert isinstance(result.exception, SystemExit)


# ---------------------------------------------------------------------------
# docbind build / init / deploy / serve
# ---------------------------------------------------------------------------


class TestSiteCommands:
    def test_build_default_output(self, project_root, site_loader):
        result = runner.invoke(app, ["build", str(project_root)])

        assert result.exit_code == 0
        site = site_loader[0]
        assert site.output == project_root.resolve() / "_site"
        assert site.call_names() == ["generate"]

    def test_build_explicit_output_relative_to_cwd(self, project_root, tmp_path, monkeypatch, site_loader):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["build", str(project_root), "public"])

        assert result.exit_code == 0
        assert site_loader[0].output == (tmp_path / "public").resolve()

    def test_build_failure_exits_1(self, project_root, site_loader, fake_site_cls):
        with patch.object(fake_site_cls, "generate", AsyncMock(side_effect=RuntimeError("bad layout"))):
            result = runner.invoke(app, ["build", str(project_root)])

        assert result.exit_code == 1
        assert "bad layout" in _flat(result.output)

    def test_init(self, tmp_path, site_loader):
        result = runner.invoke(app, ["init", str(tmp_path)])

        assert result.exit_code == 0
        assert site_loader[0].calls == [("init_site", tmp_path.resolve())]

    def test_deploy_uses_cwd(self, project_root, monkeypatch, site_loader):
        monkeypatch.chdir(project_root)
        result = runner.invoke(app, ["deploy"])

        assert result.exit_code == 0
        assert site_loader[0].root == project_root.resolve()
        assert site_loader[0].call_names() == ["deploy"]

    def test_serve_options(self, project_root, site_loader):
        with patch("docbind.cli.serve_site", new=AsyncMock()) as mock_serve:
            result = runner.invoke(app, ["serve", str(project_root), "-p", "9001", "--no-open"])

        assert result.exit_code == 0
        session = mock_serve.call_args.args[0]
        assert session.settings.port == 9001
        assert session.settings.open_browser is False
        assert session.output_dir == project_root.resolve() / "_site"

    def test_serve_defaults_from_settings_file(self, project_root, monkeypatch, site_loader):
        monkeypatch.chdir(project_root)
        (project_root / "docbind.yaml").write_text("serve:\n  port: 4000\n  open_browser: false\n")
        with patch("docbind.cli.serve_site", new=AsyncMock()) as mock_serve:
            result = runner.invoke(app, ["serve"])

        assert result.exit_code == 0
        settings = mock_serve.call_args.args[0].settings
        assert settings.port == 4000
        assert settings.open_browser is False

    def test_serve_invalid_port(self, project_root, site_loader):
        result = runner.invoke(app, ["serve", str(project_root), "-p", "99999"])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# docbind version / config
# ---------------------------------------------------------------------------


class TestMiscCommands:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_config_init_and_show(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        created = runner.invoke(app, ["config", "init"])
        assert created.exit_code == 0
        assert (tmp_path / "docbind.yaml").exists()

        again = runner.invoke(app, ["config", "init"])
        assert again.exit_code == 1
        assert "already exists" in _flat(again.output)

        shown = runner.invoke(app, ["config", "show"])
        assert shown.exit_code == 0
        assert "port" in shown.output

    def test_invalid_settings_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "docbind.yaml").write_text("log_level: loud\n")
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 1
        assert "Invalid config" in _flat(result.output)


class TestJsonFormatter:
    def test_one_json_object_per_record(self):
        record = logging.LogRecord("docbind.x", logging.WARNING, __file__, 1, "hi %s", ("there",), None)
        payload = json.loads(JsonFormatter().format(record))
        assert payload["level"] == "warning"
        assert payload["logger"] == "docbind.x"
        assert payload["message"] == "hi there"
