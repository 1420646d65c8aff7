"""
Services module for the signal relay server.
Handles the static signaling pages served next to the relay.
"""

from .static_assets import StaticAssetService, ROUTES, MIME_TYPES, content_type_for

__all__ = [
    'StaticAssetService',
    'ROUTES',
    'MIME_TYPES',
    'content_type_for'
]
