"""aiohttp web server exposing the live view to rendering clients."""

import logging
from typing import TYPE_CHECKING

from aiohttp import web

from .api import create_api_routes

if TYPE_CHECKING:
    from ..viewer import LogViewer

logger = logging.getLogger(__name__)


@web.middleware
async def _no_cache(request: web.Request, handler):
    """Live data must never be served from a cache."""
    response = await handler(request)
    if request.path.startswith("/api/") and not response.prepared:
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    return response


def create_app(viewer: "LogViewer") -> web.Application:
    app = web.Application(middlewares=[_no_cache])
    app.router.add_routes(create_api_routes(viewer))
    return app


class WebServer:
    """HTTP/WebSocket server for the viewer API."""

    def __init__(self, viewer: "LogViewer", host: str, port: int):
        self._app = create_app(viewer)
        self._host = host
        self._port = port
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        logger.info("Web server listening on %s:%d", self._host, self._port)

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Web server stopped")
