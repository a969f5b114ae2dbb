"""
Game session handling for the agent overlay.

This module provides the immutable session value, local discovery helpers
(lockfile, region, log scraping) and the manager that owns the session.
"""

from .session_data import GameSession, LockfileData
from .session_manager import SessionManager

# Export public API components for session management
__all__ = [
    "GameSession",
    "LockfileData",
    "SessionManager",
]
