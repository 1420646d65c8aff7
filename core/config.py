"""
Configuration management for the signal relay server.
"""
import os
from dataclasses import dataclass

from core.exceptions import ConfigError


DEFAULT_STATIC_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    'services',
    'assets'
)


def _int_from_env(name: str, default: int, minimum: int = 0, maximum: int = None) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer", {"value": raw})
    if value < minimum or (maximum is not None and value > maximum):
        raise ConfigError(f"{name} out of range", {
            "value": value,
            "minimum": minimum,
            "maximum": maximum
        })
    return value


def _float_from_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number", {"value": raw})
    if value < 0:
        raise ConfigError(f"{name} must not be negative", {"value": value})
    return value


@dataclass
class ServerConfig:
    """Server configuration settings."""

    # Listening socket
    host: str = "0.0.0.0"
    port: int = 8080

    # Static documents for the signaling pages
    static_dir: str = DEFAULT_STATIC_DIR

    # WebSocket transport
    heartbeat_interval: float = 30.0  # seconds, 0 disables
    max_message_size: int = 4 * 1024 * 1024
    send_queue_size: int = 256

    # Logging
    preview_length: int = 80
    log_level: str = "INFO"

    def __post_init__(self):
        """Initialize configuration from environment variables."""
        self.host = os.environ.get('HOST', self.host)
        self.port = _int_from_env('PORT', self.port, minimum=0, maximum=65535)
        self.static_dir = os.environ.get('STATIC_DIR', self.static_dir)

        self.heartbeat_interval = _float_from_env('RELAY_HEARTBEAT', self.heartbeat_interval)
        self.max_message_size = _int_from_env('RELAY_MAX_MESSAGE_SIZE', self.max_message_size)
        self.send_queue_size = _int_from_env('RELAY_SEND_QUEUE_SIZE', self.send_queue_size, minimum=1)

        self.preview_length = _int_from_env('RELAY_PREVIEW_LENGTH', self.preview_length, minimum=1)
        self.log_level = os.environ.get('LOG_LEVEL', self.log_level).upper()

    def get_heartbeat(self):
        """Heartbeat value for aiohttp, None when disabled."""
        return self.heartbeat_interval or None

    def get_public_urls(self) -> dict:
        """URLs printed in the startup banner."""
        base = f"http://localhost:{self.port}"
        return {
            'auto': f"{base}/",
            'sender': f"{base}/sender",
            'receiver': f"{base}/receiver"
        }

    def __str__(self) -> str:
        """String representation of configuration."""
        return f"ServerConfig(host={self.host}, port={self.port}, static_dir={self.static_dir})"
