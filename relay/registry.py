"""
Connection registry and message relay.

The registry is the only owner of the active set. Every mutation and every
broadcast runs synchronously on the event loop, so a broadcast never sees a
half-added or half-removed member.
"""
import datetime
from typing import Any, Dict, List, Set

from core.logging import LoggerMixin, debug_log
from relay.endpoint import Endpoint, Payload


def preview_payload(payload: Payload, limit: int = 80) -> str:
    """Short printable form of a payload for log lines."""
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return f"<binary {len(payload)} bytes>"
    if len(payload) > limit:
        return payload[:limit] + "…"
    return payload


class ConnectionRegistry(LoggerMixin):
    """Tracks connected endpoints and fans every message out to the others."""

    def __init__(self, preview_length: int = 80):
        super().__init__()
        self.preview_length = preview_length
        self._endpoints: Set[Endpoint] = set()

        self.started_at = datetime.datetime.now()
        self.messages_relayed = 0
        self.deliveries = 0

    def __len__(self) -> int:
        return len(self._endpoints)

    def __contains__(self, endpoint: Endpoint) -> bool:
        return endpoint in self._endpoints

    def endpoints(self) -> List[Endpoint]:
        """Snapshot of the active set."""
        return list(self._endpoints)

    def register(self, endpoint: Endpoint):
        """Add a newly accepted endpoint to the active set."""
        self._endpoints.add(endpoint)
        debug_log(f"🔌 [Registry] Client connected (total: {len(self._endpoints)})", {
            "endpoint_id": endpoint.endpoint_id,
            "remote": endpoint.remote
        })

    def unregister(self, endpoint: Endpoint) -> bool:
        """Remove an endpoint. Returns False if it was not a member."""
        endpoint.mark_closed()
        if endpoint not in self._endpoints:
            return False
        self._endpoints.discard(endpoint)
        debug_log(f"🔌 [Registry] Client disconnected (total: {len(self._endpoints)})", {
            "endpoint_id": endpoint.endpoint_id,
            "remote": endpoint.remote
        })
        return True

    def on_message(self, source: Endpoint, payload: Payload) -> int:
        """Relay a payload to every other open endpoint.

        Members that are still connecting or already closing are skipped; they
        are cleaned up by their own close event. Returns the number of
        destinations the payload was handed to.
        """
        source.messages_received += 1
        self.messages_relayed += 1

        debug_log(f"📨 [Registry] Relaying: {preview_payload(payload, self.preview_length)}", {
            "source": source.endpoint_id
        })

        delivered = 0
        for endpoint in list(self._endpoints):
            if endpoint is source or not endpoint.is_open:
                continue
            if endpoint.enqueue(payload):
                delivered += 1

        self.deliveries += delivered
        self.log_debug("Relay fan-out completed", {
            "source": source.endpoint_id,
            "delivered": delivered,
            "total_clients": len(self._endpoints)
        })
        return delivered

    def get_status(self) -> Dict[str, Any]:
        """Get registry status."""
        return {
            'active_endpoints': len(self._endpoints),
            'endpoints': sorted(
                (endpoint.describe() for endpoint in self._endpoints),
                key=lambda info: info['endpoint_id']
            ),
            'messages_relayed': self.messages_relayed,
            'deliveries': self.deliveries,
            'uptime_seconds': round((datetime.datetime.now() - self.started_at).total_seconds(), 3)
        }

    async def cleanup(self):
        """Stop every writer and empty the active set for shutdown."""
        debug_log("🧹 [Registry] cleanup() called", {"active_endpoints": len(self._endpoints)})
        for endpoint in list(self._endpoints):
            self.unregister(endpoint)
        debug_log("✅ [Registry] cleanup() completed")
