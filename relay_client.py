"""
Command-line client for poking at a running signal relay.

Every line typed on stdin is sent as one text message; everything the relay
forwards is printed. Useful to watch the offer/answer/candidate traffic of
browser peers, or to act as a fake peer while debugging.
"""
import argparse
import asyncio
import sys
from typing import Awaitable, Callable, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from core.logging import LoggerMixin, setup_logging, debug_log


Payload = Union[str, bytes]


class RelayClient(LoggerMixin):
    """Thin WebSocket client for the relay."""

    def __init__(self, url: str):
        super().__init__()
        self.url = url
        self.websocket = None
        self.received = 0

    async def connect(self):
        self.websocket = await websockets.connect(self.url)
        debug_log("🔌 [RelayClient] Connected", {"url": self.url})

    async def send(self, payload: Payload):
        await self.websocket.send(payload)

    async def receive(self, timeout: Optional[float] = None) -> Payload:
        """Next forwarded message, raising asyncio.TimeoutError after timeout."""
        message = await asyncio.wait_for(self.websocket.recv(), timeout)
        self.received += 1
        return message

    async def listen(self, on_message: Callable[[Payload], Union[None, Awaitable[None]]]):
        """Call on_message for each forwarded message until the relay closes."""
        try:
            async for message in self.websocket:
                self.received += 1
                result = on_message(message)
                if asyncio.iscoroutine(result):
                    await result
        except ConnectionClosed as e:
            self.log_warning("Relay connection closed", {"error": str(e)})

    async def close(self):
        if self.websocket is not None:
            await self.websocket.close()
            self.websocket = None
            debug_log("🔌 [RelayClient] Disconnected", {"url": self.url})

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


def format_message(message: Payload) -> str:
    if isinstance(message, bytes):
        return f"<binary {len(message)} bytes> {message[:32].hex()}"
    return message


async def _pump_stdin(client: RelayClient):
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            return
        line = line.rstrip("\n")
        if line:
            await client.send(line)


async def run_client(url: str):
    async with RelayClient(url) as client:
        listener = asyncio.create_task(client.listen(lambda m: print(f"<< {format_message(m)}", flush=True)))
        sender = asyncio.create_task(_pump_stdin(client))
        done, pending = await asyncio.wait({listener, sender}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            task.result()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Send stdin lines to a signal relay and print what it forwards.")
    parser.add_argument("url", nargs="?", default="ws://localhost:8080/", help="relay WebSocket URL")
    parser.add_argument("--log-level", default="WARNING", help="logging level")
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, log_file=None)
    try:
        asyncio.run(run_client(args.url))
    except KeyboardInterrupt:
        pass
    except (OSError, ConnectionClosed) as e:
        print(f"❌ Connection error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
