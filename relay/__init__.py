"""
Relay module for the signal relay server.
Handles the WebSocket listener, connected endpoints, and message fan-out.
"""

from .endpoint import Endpoint, EndpointState
from .registry import ConnectionRegistry
from .listener import TransportListener, create_upgrade_middleware, is_upgrade_request

__all__ = [
    'Endpoint',
    'EndpointState',
    'ConnectionRegistry',
    'TransportListener',
    'create_upgrade_middleware',
    'is_upgrade_request'
]
