"""
HTTP API for OmniDash.

Exposes the four snapshot store operations to the dashboard UI.
"""

from .app import create_app

__all__ = ["create_app"]
