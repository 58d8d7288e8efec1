"""Static preview server for the generated site."""

from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass, field

import uvicorn
from starlette.applications import Starlette
from starlette.routing import Mount
from starlette.staticfiles import StaticFiles

from docbind.config.models import ServerConfig
from docbind.errors import ServerBindFailure

logger = logging.getLogger(__name__)

_WILDCARD_HOSTS = {"0.0.0.0", "::", ""}
_LOOPBACK_HOST = "127.0.0.1"


def display_host(bound_host: str) -> str:
    """Host to show the user; wildcard binds are reported as loopback."""
    return _LOOPBACK_HOST if bound_host in _WILDCARD_HOSTS else bound_host


def serve_url(address: tuple[str, int]) -> str:
    host = display_host(address[0])
    if ":" in host:
        host = f"[{host}]"
    return f"http://{host}:{address[1]}"


def build_app(config: ServerConfig) -> Starlette:
    """Mount every (base_url, directory) pair, longest prefix first.

    The server root is also served at ``/`` unless a mount point already
    claims it.
    """
    mounts = {"/" + base_url.strip("/"): directory for base_url, directory in config.mount_points}
    mounts.setdefault("/", config.root)
    routes = [
        Mount(prefix, app=StaticFiles(directory=directory, html=True, check_dir=False))
        for prefix, directory in sorted(mounts.items(), key=lambda item: len(item[0]), reverse=True)
    ]
    return Starlette(routes=routes)


@dataclass
class PreviewHandle:
    """A running preview server. ``ready`` is set once it accepts connections."""

    address: tuple[str, int]
    ready: asyncio.Event = field(default_factory=asyncio.Event)
    _server: uvicorn.Server | None = None
    _task: asyncio.Task | None = None

    @property
    def url(self) -> str:
        return serve_url(self.address)

    async def stop(self) -> None:
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        await self._task


class PreviewServer:
    def __init__(self, config: ServerConfig) -> None:
        self.config = config

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.config.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.config.host, self.config.port))
        except OSError as exc:
            sock.close()
            raise ServerBindFailure(self.config.host, self.config.port, exc) from exc
        return sock

    async def start(self) -> PreviewHandle:
        """Bind, start serving in the background and wait for readiness."""
        sock = self._bind()
        server = uvicorn.Server(
            uvicorn.Config(build_app(self.config), log_level=self.config.log_level, lifespan="off")
        )
        task = asyncio.create_task(server.serve(sockets=[sock]))
        while not server.started:
            if task.done():
                cause = task.exception() or RuntimeError("server exited during startup")
                raise ServerBindFailure(self.config.host, self.config.port, cause)
            await asyncio.sleep(0.05)

        host, port = sock.getsockname()[:2]
        handle = PreviewHandle(address=(host, port), _server=server, _task=task)
        handle.ready.set()
        logger.debug("preview server listening on %s:%d", host, port)
        return handle
