"""
Static Asset Service for the signal relay.
Serves the signaling web pages over plain HTTP on the relay's port.
"""
import asyncio
import os
from typing import Dict, Optional

from aiohttp import web

from core.config import ServerConfig
from core.exceptions import StaticAssetError
from core.logging import LoggerMixin


ROUTES: Dict[str, str] = {
    "/": "auto.html",
    "/auto": "auto.html",
    "/sender": "sender.html",
    "/receiver": "receiver.html",
}

MIME_TYPES: Dict[str, str] = {
    ".html": "text/html",
    ".js": "application/javascript",
    ".css": "text/css",
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(file_name: str) -> str:
    """Content type derived from the file extension."""
    ext = os.path.splitext(file_name)[1].lower()
    return MIME_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


class StaticAssetService(LoggerMixin):
    """Maps the fixed page routes to documents in the static directory."""

    def __init__(self, config: ServerConfig, routes: Optional[Dict[str, str]] = None):
        super().__init__()
        self.config = config
        self.routes = dict(routes if routes is not None else ROUTES)
        self.requests_served = 0

    def resolve(self, path: str) -> Optional[str]:
        """Absolute file path for a route, or None for unknown routes."""
        file_name = self.routes.get(path)
        if file_name is None:
            return None
        return os.path.join(self.config.static_dir, file_name)

    async def load(self, file_path: str) -> bytes:
        """Read a document without blocking the event loop."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._read_file, file_path)
        except OSError as e:
            raise StaticAssetError("Failed to read static document", {
                "file_path": file_path,
                "error": str(e),
                "error_type": type(e).__name__
            }) from e

    @staticmethod
    def _read_file(file_path: str) -> bytes:
        with open(file_path, 'rb') as f:
            return f.read()

    async def handle_request(self, request: web.Request) -> web.Response:
        """Serve a known route, 404 for unknown ones, 500 when a read fails."""
        file_path = self.resolve(request.path)
        if file_path is None:
            return web.Response(status=404, text="404 — Not Found", content_type="text/plain")

        try:
            body = await self.load(file_path)
        except StaticAssetError as e:
            self.log_error("Static document unavailable", e.details)
            return web.Response(status=500, text="500 — Internal Server Error", content_type="text/plain")

        self.requests_served += 1
        return web.Response(status=200, body=body, content_type=content_type_for(file_path))

    def add_routes(self, app: web.Application):
        """Register the page routes plus a catch-all that answers 404."""
        for path in self.routes:
            app.router.add_get(path, self.handle_request)
        app.router.add_route("*", "/{tail:.*}", self.handle_request)

    def get_status(self) -> Dict[str, object]:
        """Get static asset service status."""
        return {
            'static_dir': self.config.static_dir,
            'routes': sorted(self.routes),
            'requests_served': self.requests_served
        }
