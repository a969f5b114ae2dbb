# agent_overlay/broadcast/websocket_hub.py
import logging
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect

from ..voice.models import SpeakingEvent
from .interfaces import AbstractBroadcastSink
from .models import EnrichedParticipant

logger = logging.getLogger(__name__)


class WebSocketBroadcastHub(AbstractBroadcastSink):
    """Fans roster snapshots and speaking events out to every connected overlay viewer."""

    def __init__(self) -> None:
        self._connections: Set[WebSocket] = set()
        self._last_state: Optional[Dict[str, Any]] = None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)
        logger.info(f"WebSocketBroadcastHub: Viewer connected ({len(self._connections)} total).")
        # New viewers get the current picture straight away
        if self._last_state is not None:
            await websocket.send_json(self._last_state)

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info(f"WebSocketBroadcastHub: Viewer disconnected ({len(self._connections)} total).")

    async def _broadcast(self, message: Dict[str, Any]) -> None:
        stale_connections: List[WebSocket] = []
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except (RuntimeError, OSError, WebSocketDisconnect) as e:
                logger.debug(f"WebSocketBroadcastHub: Dropping stale viewer: {e}")
                stale_connections.append(websocket)
        for websocket in stale_connections:
            self.disconnect(websocket)

    async def publish_state(self, participants: List[EnrichedParticipant]) -> None:
        message = {"type": "state", "users": [p.to_wire() for p in participants]}
        self._last_state = message
        await self._broadcast(message)

    async def publish_speaking(self, event: SpeakingEvent) -> None:
        await self._broadcast({"type": "speaking", "userId": event.participant_id, "isSpeaking": event.is_speaking})
