"""
WebSocket transport listener.

Every request that asks for a WebSocket upgrade, whatever its path, becomes
an endpoint in the shared registry.
"""
from aiohttp import web, WSMsgType

from core.config import ServerConfig
from core.exceptions import UpgradeError
from core.logging import LoggerMixin, debug_log
from relay.endpoint import Endpoint
from relay.registry import ConnectionRegistry


def is_upgrade_request(request: web.Request) -> bool:
    """Check whether the request asks for a WebSocket upgrade."""
    upgrade = request.headers.get('Upgrade', '')
    connection = request.headers.get('Connection', '')
    return upgrade.lower() == 'websocket' and 'upgrade' in connection.lower()


class TransportListener(LoggerMixin):
    """Accepts upgraded connections and feeds their frames to the registry."""

    def __init__(self, registry: ConnectionRegistry, config: ServerConfig):
        super().__init__()
        self.registry = registry
        self.config = config
        self.failed_upgrades = 0

    async def _prepare(self, ws: web.WebSocketResponse, request: web.Request):
        try:
            await ws.prepare(request)
        except Exception as e:
            raise UpgradeError("WebSocket upgrade failed", {
                "remote": request.remote,
                "path": request.path,
                "error": str(e),
                "error_type": type(e).__name__
            }) from e

    async def handle_upgrade(self, request: web.Request) -> web.StreamResponse:
        """Upgrade one request and relay its messages until it closes."""
        ws = web.WebSocketResponse(
            heartbeat=self.config.get_heartbeat(),
            max_msg_size=self.config.max_message_size
        )
        try:
            await self._prepare(ws, request)
        except UpgradeError as e:
            self.failed_upgrades += 1
            self.log_error("Upgrade failed", e.details)
            return web.Response(status=400, text="400 — Bad Request")

        # No await between the upgrade and registration, so no frame is read first.
        endpoint = Endpoint(ws, remote=request.remote, send_queue_size=self.config.send_queue_size)
        self.registry.register(endpoint)
        endpoint.mark_open()
        debug_log("✅ [Listener] WebSocket upgraded", {
            "endpoint_id": endpoint.endpoint_id,
            "path": request.path
        })

        try:
            async for msg in ws:
                if msg.type in (WSMsgType.TEXT, WSMsgType.BINARY):
                    self.registry.on_message(endpoint, msg.data)
                elif msg.type == WSMsgType.ERROR:
                    self.log_error("WebSocket transport error", {
                        "endpoint_id": endpoint.endpoint_id,
                        "error": str(ws.exception())
                    })
                    break
        finally:
            self.registry.unregister(endpoint)

        return ws


def create_upgrade_middleware(listener: TransportListener):
    """Route every upgrade request to the listener before normal routing."""

    @web.middleware
    async def upgrade_middleware(request: web.Request, handler):
        if is_upgrade_request(request):
            return await listener.handle_upgrade(request)
        return await handler(request)

    return upgrade_middleware
