"""
Custom exception classes for the signal relay server.
"""


class RelayError(Exception):
    """Base exception for the signal relay server."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{super().__str__()} - {self.details}"
        return super().__str__()


class ConfigError(RelayError):
    """Raised when an environment setting cannot be used."""
    pass


class UpgradeError(RelayError):
    """Raised when a WebSocket upgrade cannot be completed."""
    pass


class SendError(RelayError):
    """Raised when a payload cannot be written to one endpoint."""
    pass


class StaticAssetError(RelayError):
    """Raised when a static document cannot be read."""
    pass
