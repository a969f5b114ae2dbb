"""
HTTP and WebSocket surface used by the dashboard, the overlay page and the CLI.
"""

from .endpoints import api_router, viewer_router

__all__ = ["api_router", "viewer_router"]
