"""
Signal relay server.
Relays opaque signaling messages between WebSocket clients and serves the
signaling pages on the same port.
"""
import asyncio

from aiohttp import web

from core.config import ServerConfig
from core.logging import setup_logging, debug_log
from relay import ConnectionRegistry, TransportListener, create_upgrade_middleware
from services import StaticAssetService


class SignalRelayServer:
    """Owns the registry, the listener and the static page service."""

    def __init__(self, config: ServerConfig = None):
        self.config = config or ServerConfig()

        self.registry = ConnectionRegistry(preview_length=self.config.preview_length)
        self.listener = TransportListener(self.registry, self.config)
        self.static_assets = StaticAssetService(self.config)

        debug_log("🚀 [Server] Signal relay server initialized", {"config": str(self.config)})

    def get_server_status(self) -> dict:
        """Get comprehensive server status."""
        return {
            'server_type': 'signal_relay',
            'relay': self.registry.get_status(),
            'listener': {
                'failed_upgrades': self.listener.failed_upgrades
            },
            'static_assets': self.static_assets.get_status()
        }

    async def cleanup(self):
        """Clean up server resources."""
        debug_log("🧹 [Server] Cleaning up server")
        await self.registry.cleanup()
        debug_log("🧹 [Server] Server cleanup completed")


async def handle_status(request):
    """Handle status request."""
    server = request.app['server']
    return web.json_response(server.get_server_status())


async def _on_cleanup(app: web.Application):
    await app['server'].cleanup()


def create_app(server: SignalRelayServer = None) -> web.Application:
    """Build the aiohttp application for a relay server."""
    server = server or SignalRelayServer()

    app = web.Application(middlewares=[create_upgrade_middleware(server.listener)])
    app['server'] = server

    # /status must be registered before the static catch-all route
    app.router.add_get("/status", handle_status)
    server.static_assets.add_routes(app)

    app.on_cleanup.append(_on_cleanup)
    return app


def print_banner(config: ServerConfig):
    urls = config.get_public_urls()
    print()
    print("  🚀 WebRTC Signaling Server")
    print("  ─────────────────────────────")
    print(f"  Auto mode:    {urls['auto']}")
    print(f"  Manual mode:  {urls['sender']}")
    print(f"                {urls['receiver']}")
    print()


async def main():
    """Main server function."""
    config = ServerConfig()
    setup_logging(level=config.log_level)
    debug_log("🚀 [Main] Starting signal relay server")

    server = SignalRelayServer(config)
    app = create_app(server)

    runner = web.AppRunner(app)
    await runner.setup()
    try:
        site = web.TCPSite(runner, config.host, config.port)
        debug_log(f"🌐 [Main] Starting HTTP server on port {config.port}")
        await site.start()

        debug_log("✅ [Main] Signal relay server started successfully", {
            "host": config.host,
            "port": config.port
        })
        print_banner(config)

        # Run forever
        await asyncio.Future()
    finally:
        await runner.cleanup()


def run():
    """Console entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        debug_log("👋 [Main] Signal relay server stopped")


if __name__ == "__main__":
    run()
