"""CLI entry point for docbind."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.syntax import Syntax

from docbind import __version__
from docbind.config import DocbindConfig, ServeSettings, load_config
from docbind.config.loader import DEFAULT_CONFIG_TEMPLATE, SETTINGS_FILE_NAME, resolve_root
from docbind.errors import DocbindError
from docbind.log import setup_logging
from docbind.orchestrator import (
    LiveSession,
    build_site,
    default_output_dir,
    deploy_site,
    include_file,
    init_site,
    render_file,
    serve_site,
)
from docbind.plugins import PluginLoader, PluginNotFoundError

app = typer.Typer(
    name="docbind",
    help="Build, preview and deploy documentation sites from fragment-based sources.",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Manage docbind settings.")
app.add_typer(config_app, name="config")

_FAILURE_CONTEXT = {
    "include": "Error processing fragment include",
    "render": "Error processing file rendering",
}

# Global state
_config: DocbindConfig | None = None


def _get_config() -> DocbindConfig:
    if _config is None:
        return load_config(search_dir=Path.cwd())
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to docbind.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config, search_dir=Path.cwd())
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    setup_logging(_config.log_level, _config.log_format)


def _logo() -> None:
    rprint(f"[bold cyan]docbind[/bold cyan] [dim]v{__version__}[/dim]")


def _fail(context: str, error: Exception) -> None:
    rprint(f"[red]{context}:[/red] {escape(str(error))}")
    raise typer.Exit(1)


def _require_project(cwd: Path, operation: str) -> None:
    try:
        resolve_root(cwd)
    except DocbindError as e:
        _fail(_FAILURE_CONTEXT[operation], e)


def _load_site_builder(cfg: DocbindConfig, root: Path, output: Path):
    try:
        site_cls = PluginLoader(cfg).load_site_builder()
    except PluginNotFoundError as e:
        _fail("Error", e)
    return site_cls(root, output)


def _load_fragment_engine(cfg: DocbindConfig):
    try:
        engine_cls = PluginLoader(cfg).load_fragment_engine()
    except PluginNotFoundError as e:
        _fail("Error", e)
    return engine_cls()


@app.command()
def version() -> None:
    """Show the docbind version."""
    rprint(__version__)


@app.command()
def include(
    file: str = typer.Argument(..., help="Source file to process"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output file path"),
) -> None:
    """Process all the fragment includes in the given file."""
    cfg = _get_config()
    cwd = Path.cwd()
    _require_project(cwd, "include")
    engine = _load_fragment_engine(cfg)
    out_path = (cwd / output).resolve() if output else None
    try:
        result = asyncio.run(include_file(engine, (cwd / file).resolve(), cwd, out_path))
    except DocbindError as e:
        _fail(_FAILURE_CONTEXT["include"], e)
    if out_path is None:
        typer.echo(result)


@app.command()
def render(
    file: str = typer.Argument(..., help="Source file to render"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output file path"),
) -> None:
    """Render the given file."""
    cfg = _get_config()
    cwd = Path.cwd()
    _require_project(cwd, "render")
    engine = _load_fragment_engine(cfg)
    out_path = (cwd / output).resolve() if output else None
    try:
        result = asyncio.run(render_file(engine, (cwd / file).resolve(), cwd, out_path))
    except DocbindError as e:
        _fail(_FAILURE_CONTEXT["render"], e)
    if out_path is None:
        typer.echo(result)


@app.command()
def init(
    root: str | None = typer.Argument(None, help="Project directory (default: current directory)"),
) -> None:
    """Initialize a new site project."""
    cfg = _get_config()
    root_dir = Path(root or Path.cwd()).resolve()
    _logo()
    site = _load_site_builder(cfg, root_dir, default_output_dir(root_dir, cfg.serve.output_dir))
    try:
        asyncio.run(init_site(site, root_dir))
    except Exception as e:
        _fail("Error", e)


@app.command()
def build(
    root: str | None = typer.Argument(None, help="Project directory (default: current directory)"),
    output: str | None = typer.Argument(None, help="Output directory (default: <root>/_site)"),
) -> None:
    """Build the website."""
    cfg = _get_config()
    root_dir = Path(root or Path.cwd()).resolve()
    out_dir = (
        (Path.cwd() / output).resolve()
        if output
        else default_output_dir(root_dir, cfg.serve.output_dir)
    )
    _logo()
    site = _load_site_builder(cfg, root_dir, out_dir)
    try:
        asyncio.run(build_site(site))
    except Exception as e:
        _fail("Error", e)


@app.command()
def serve(
    root: str | None = typer.Argument(None, help="Project directory (default: current directory)"),
    port: int | None = typer.Option(
        None, "--port", "-p", help="Port for the server to listen on (default 8080)"
    ),
    no_open: bool = typer.Option(
        False, "--no-open", help="Do not open the site in a browser automatically"
    ),
) -> None:
    """Build, then serve the website, rebuilding on every change."""
    cfg = _get_config()
    overrides = {"port": port, "open_browser": False if no_open else None}
    try:
        settings = ServeSettings(
            **{
                **cfg.serve.model_dump(),
                **{k: v for k, v in overrides.items() if v is not None},
            }
        )
    except ValueError as e:
        _fail("Error", e)

    root_dir = Path(root or Path.cwd()).resolve()
    out_dir = default_output_dir(root_dir, settings.output_dir)
    _logo()
    site = _load_site_builder(cfg, root_dir, out_dir)
    session = LiveSession(site, root_dir, out_dir, settings)
    try:
        asyncio.run(serve_site(session))
    except KeyboardInterrupt:
        rprint("[dim]Stopped.[/dim]")
    except Exception as e:
        _fail("Error", e)


@app.command()
def deploy() -> None:
    """Deploy the generated site to the repository's GitHub Pages."""
    cfg = _get_config()
    root_dir = Path.cwd().resolve()
    site = _load_site_builder(cfg, root_dir, default_output_dir(root_dir, cfg.serve.output_dir))
    _logo()
    try:
        asyncio.run(deploy_site(site))
    except Exception as e:
        _fail("Error", e)


@config_app.command("show")
def config_show() -> None:
    """Show current resolved settings."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing settings"),
) -> None:
    """Create default docbind.yaml in current directory."""
    target = Path(SETTINGS_FILE_NAME)
    if target.exists() and not force:
        rprint(f"[yellow]{SETTINGS_FILE_NAME} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
