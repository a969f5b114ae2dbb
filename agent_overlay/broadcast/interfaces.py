# agent_overlay/broadcast/interfaces.py
from abc import ABC, abstractmethod
from typing import List

from ..voice.models import SpeakingEvent
from .models import EnrichedParticipant


class AbstractBroadcastSink(ABC):
    """Push-only outlet for the enriched roster; the engine never reads from it."""

    @abstractmethod
    async def publish_state(self, participants: List[EnrichedParticipant]) -> None:
        """Replace the full displayed state."""
        pass

    @abstractmethod
    async def publish_speaking(self, event: SpeakingEvent) -> None:
        """Forward one speaking start/stop immediately."""
        pass
