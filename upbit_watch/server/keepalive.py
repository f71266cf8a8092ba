"""Minimal HTTP liveness endpoint."""

from typing import Optional
from aiohttp import web
from loguru import logger


KEEPALIVE_TEXT = "🔥 Upbit Bot is Running"


async def handle_root(request: web.Request) -> web.Response:
    return web.Response(text=KEEPALIVE_TEXT)


def create_keepalive_app() -> web.Application:
    """Any method on ``/`` answers 200 with a fixed text."""
    app = web.Application()
    app.router.add_route("*", "/", handle_root)
    return app


class KeepAliveServer:
    """Runs the liveness app on the bot's event loop."""

    def __init__(self, host: str = "0.0.0.0", port: int = 3000):
        self.host = host
        self.port = port
        self._runner: Optional[web.AppRunner] = None

    async def start(self) -> None:
        self._runner = web.AppRunner(create_keepalive_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info(f"🌐 KeepAlive server running on port {self.port}")

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
