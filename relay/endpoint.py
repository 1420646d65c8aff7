"""
Connected participant handle for the signaling relay.

Each endpoint owns a single outbound queue drained by its own writer task, so
a slow or dead destination never holds up delivery to anybody else, and the
payloads one source sends reach this endpoint in the order they were relayed.
"""
import asyncio
import datetime
import enum
import itertools
from typing import Any, Dict, Optional, Union

from core.exceptions import SendError
from core.logging import LoggerMixin, debug_log


Payload = Union[str, bytes]

_endpoint_ids = itertools.count(1)


class EndpointState(enum.Enum):
    """Lifecycle of a relay endpoint's transport."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class Endpoint(LoggerMixin):
    """One connected participant and its outbound writer."""

    def __init__(self, transport: Any, remote: Optional[str] = None, send_queue_size: int = 256):
        super().__init__()
        self.transport = transport
        self.endpoint_id: int = next(_endpoint_ids)
        self.remote = remote or "unknown"
        self.connected_at = datetime.datetime.now()

        self.messages_received = 0
        self.messages_sent = 0
        self.messages_dropped = 0

        self._state = EndpointState.CONNECTING
        self._outbound: asyncio.Queue = asyncio.Queue(maxsize=send_queue_size)
        self._writer: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"Endpoint(id={self.endpoint_id}, remote={self.remote}, state={self.state.value})"

    @property
    def state(self) -> EndpointState:
        """Current state, reporting CLOSING once the transport starts shutting down."""
        if self._state is EndpointState.OPEN and getattr(self.transport, 'closed', False):
            return EndpointState.CLOSING
        return self._state

    @property
    def is_open(self) -> bool:
        return self.state is EndpointState.OPEN

    def mark_open(self):
        """Move from CONNECTING to OPEN and start the writer."""
        if self._state is not EndpointState.CONNECTING:
            self.log_warning("Ignoring open for endpoint that is not connecting", {
                "endpoint_id": self.endpoint_id,
                "state": self._state.value
            })
            return
        self._state = EndpointState.OPEN
        self._writer = asyncio.create_task(self._drain_outbound())

    def mark_closed(self):
        """Move to CLOSED, stop the writer and drop anything still queued."""
        if self._state is EndpointState.CLOSED:
            return
        self._state = EndpointState.CLOSED

        if self._writer and not self._writer.done():
            self._writer.cancel()
        self._writer = None

        discarded = 0
        while True:
            try:
                self._outbound.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._outbound.task_done()
            discarded += 1

        if discarded:
            debug_log("🗑️ [Endpoint] Discarded undelivered payloads", {
                "endpoint_id": self.endpoint_id,
                "discarded": discarded
            }, "DEBUG")

    def enqueue(self, payload: Payload) -> bool:
        """Hand a payload to the writer. Returns False when it was not accepted."""
        if not self.is_open:
            return False
        try:
            self._outbound.put_nowait(payload)
        except asyncio.QueueFull:
            self.messages_dropped += 1
            self.log_warning("Outbound queue full, dropping payload", {
                "endpoint_id": self.endpoint_id,
                "queue_size": self._outbound.maxsize,
                "dropped_total": self.messages_dropped
            })
            return False
        return True

    async def drain(self):
        """Wait until every queued payload has been sent or discarded."""
        await self._outbound.join()

    async def send(self, payload: Payload):
        """Write one payload to the transport, keeping its frame type."""
        try:
            if isinstance(payload, (bytes, bytearray, memoryview)):
                await self.transport.send_bytes(bytes(payload))
            else:
                await self.transport.send_str(payload)
        except (ConnectionError, RuntimeError) as e:
            raise SendError("Failed to send payload", {
                "endpoint_id": self.endpoint_id,
                "error": str(e),
                "error_type": type(e).__name__
            }) from e

    async def _drain_outbound(self):
        while True:
            payload = await self._outbound.get()
            try:
                # The transport may have closed while this payload was queued.
                if not self.is_open:
                    continue
                await self.send(payload)
                self.messages_sent += 1
            except SendError as e:
                self.log_warning("Send to endpoint failed", e.details)
            finally:
                self._outbound.task_done()

    def describe(self) -> Dict[str, Any]:
        """Snapshot used by the status route and log lines."""
        return {
            "endpoint_id": self.endpoint_id,
            "remote": self.remote,
            "state": self.state.value,
            "connected_at": self.connected_at.isoformat(),
            "messages_received": self.messages_received,
            "messages_sent": self.messages_sent,
            "messages_dropped": self.messages_dropped,
            "queued": self._outbound.qsize()
        }
