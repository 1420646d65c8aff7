"""
Core module for the signal relay server.
Contains configuration, logging, and common exceptions.
"""

from .config import ServerConfig
from .logging import setup_logging, debug_log, LoggerMixin
from .exceptions import RelayError, ConfigError, UpgradeError, SendError, StaticAssetError

__all__ = [
    'ServerConfig',
    'setup_logging',
    'debug_log',
    'LoggerMixin',
    'RelayError',
    'ConfigError',
    'UpgradeError',
    'SendError',
    'StaticAssetError'
]
