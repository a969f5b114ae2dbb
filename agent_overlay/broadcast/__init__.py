"""
Outward-facing broadcast of the enriched voice roster.
"""

from .models import EnrichedParticipant
from .interfaces import AbstractBroadcastSink
from .websocket_hub import WebSocketBroadcastHub

__all__ = [
    "AbstractBroadcastSink",
    "EnrichedParticipant",
    "WebSocketBroadcastHub",
]
