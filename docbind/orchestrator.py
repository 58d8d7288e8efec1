"""Command sequencing: one-shot include/render, build/deploy/init, and live serve."""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from collections.abc import Callable
from pathlib import Path

from jinja2 import TemplateError

from docbind.config.loader import build_base_config, resolve_root
from docbind.config.models import ServerConfig, ServeSettings
from docbind.errors import FragmentResolutionFailure, OutputWriteFailure
from docbind.interfaces import FragmentEngine, SiteBuilder
from docbind.rendering import expand_template, format_html
from docbind.server import PreviewHandle, PreviewServer
from docbind.variables import VariableStore
from docbind.watch.dispatcher import WatchDispatcher
from docbind.watch.ignore import make_ignore_predicate
from docbind.watch.watcher import SiteWatcher

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "_site"


def default_output_dir(root: Path, name: str = DEFAULT_OUTPUT_DIR) -> Path:
    return Path(root) / name


def _write_output(output: Path, content: str) -> Path:
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteFailure(output, exc) from exc
    logger.info("Result was written to %s", output)
    return output


# -- One-shot commands ---------------------------------------------------


async def include_file(
    engine: FragmentEngine,
    file: Path,
    start_dir: Path,
    output: Path | None = None,
) -> str:
    """Resolve all fragment includes in ``file``.

    The project root is searched upward from ``start_dir``. Writes the result
    to ``output`` when given and returns it either way.
    """
    root = resolve_root(start_dir)
    config = VariableStore(root).apply_to(build_base_config(root))
    try:
        result = await engine.include_file(Path(file), config)
    except Exception as exc:
        raise FragmentResolutionFailure(Path(file), "include", exc) from exc
    if output is not None:
        _write_output(Path(output), result)
    return result


async def render_file(
    engine: FragmentEngine,
    file: Path,
    start_dir: Path,
    output: Path | None = None,
) -> str:
    """Render ``file``, format the HTML, then substitute ``baseUrl``/``hostBaseUrl``.

    For a local render both URLs are the project root.
    """
    root = resolve_root(start_dir)
    config = VariableStore(root).apply_to(build_base_config(root))
    try:
        result = await engine.render_file(Path(file), config)
    except Exception as exc:
        raise FragmentResolutionFailure(Path(file), "render", exc) from exc
    base_url = str(root)
    try:
        formatted = expand_template(format_html(result), base_url=base_url, host_base_url=base_url)
    except TemplateError as exc:
        raise FragmentResolutionFailure(Path(file), "render", exc) from exc
    if output is not None:
        _write_output(Path(output), formatted)
    return formatted


async def build_site(site: SiteBuilder) -> None:
    await site.generate()
    logger.info("Build success!")


async def deploy_site(site: SiteBuilder) -> None:
    await site.deploy()
    logger.info("Deployed!")


async def init_site(site: SiteBuilder, root: Path) -> None:
    await site.init_site(root)
    logger.info("Initialization success.")


# -- Live serve ----------------------------------------------------------


def build_server_config(
    site_config: dict, output_dir: Path, settings: ServeSettings
) -> ServerConfig:
    """Server config with the site's base URL (default ``/``) mounted on the output.

    The base URL is normalised to one leading slash and no trailing slash.
    """
    base_url = "/" + (site_config.get("baseUrl") or "").strip("/")
    return ServerConfig(
        root=output_dir,
        mount_points=((base_url, output_dir),),
        port=settings.port,
        host=settings.host,
        open_browser=settings.open_browser,
    )


class LiveSession:
    """Build, watch, rebuild and serve one project.

    ``start`` runs the steps strictly in order: read site config, register the
    mount point, full generation, watcher installation, preview server. Any
    failure up to the server bind propagates; afterwards failures are
    confined to the watch event that caused them.
    """

    def __init__(
        self,
        site: SiteBuilder,
        root: Path,
        output_dir: Path,
        settings: ServeSettings,
        *,
        watcher_factory: Callable[..., SiteWatcher] = SiteWatcher,
        server_factory: Callable[[ServerConfig], PreviewServer] = PreviewServer,
    ) -> None:
        self.site = site
        self.root = Path(root).resolve()
        self.output_dir = Path(output_dir).resolve()
        self.settings = settings
        self._watcher_factory = watcher_factory
        self._server_factory = server_factory
        self.server_config: ServerConfig | None = None
        self.dispatcher: WatchDispatcher | None = None
        self.watcher: SiteWatcher | None = None
        self.handle: PreviewHandle | None = None
        self._dispatch_task: asyncio.Task | None = None

    async def start(self) -> PreviewHandle:
        site_config = await self.site.read_site_config()
        self.server_config = build_server_config(site_config, self.output_dir, self.settings)

        await self.site.generate()

        ignored = make_ignore_predicate(self.root, self.output_dir)
        self.dispatcher = WatchDispatcher(self.site, ignored)
        self._dispatch_task = asyncio.create_task(self.dispatcher.run())
        self.watcher = self._watcher_factory(self.root, ignored=ignored, ignore_initial=True)
        self.watcher.start(self.dispatcher.submit)

        self.handle = await self._server_factory(self.server_config).start()
        await self.handle.ready.wait()
        logger.info('Serving "%s" at %s', self.output_dir, self.handle.url)
        logger.info("Press CTRL+C to stop ...")
        if self.server_config.open_browser:
            webbrowser.open(self.handle.url)
        return self.handle

    async def stop(self) -> None:
        if self.watcher is not None:
            self.watcher.stop()
        if self._dispatch_task is not None:
            self._dispatch_task.cancel()
            try:
                await self._dispatch_task
            except asyncio.CancelledError:
                pass
        if self.handle is not None:
            await self.handle.stop()


async def serve_site(session: LiveSession) -> None:
    """Run a live session until the process is interrupted."""
    try:
        await session.start()
        await asyncio.Event().wait()
    finally:
        await session.stop()
