# agent_overlay/voice/interfaces.py
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from .models import VoiceEvent, VoiceParticipant

logger = logging.getLogger(__name__)


class AbstractVoiceClient(ABC):
    """
    Capability the engine consumes from the voice platform.

    Events are pushed into `events`, a bounded queue; when it is full the
    oldest pending event is dropped so the platform callback never blocks.
    """

    def __init__(self, queue_size: int = 256):
        self.events: "asyncio.Queue[VoiceEvent]" = asyncio.Queue(maxsize=queue_size)

    @property
    @abstractmethod
    def connected(self) -> bool:
        """Whether the platform connection is currently up."""
        pass

    @property
    @abstractmethod
    def local_user_id(self) -> Optional[str]:
        """Platform id of the user running this application."""
        pass

    @abstractmethod
    async def connect(self) -> bool:
        """Open the platform connection; returns False instead of raising."""
        pass

    async def reconnect(self) -> bool:
        await self.close()
        return await self.connect()

    @abstractmethod
    async def current_roster(self) -> List[VoiceParticipant]:
        """Members of the selected voice channel; [] when none is selected."""
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

    def emit(self, event: VoiceEvent) -> None:
        """Queue an event without blocking."""
        if self.events.full():
            try:
                dropped = self.events.get_nowait()
                logger.warning(f"Voice event queue full, dropping oldest event: {dropped!r}")
            except asyncio.QueueEmpty:
                pass
        self.events.put_nowait(event)


class InMemoryVoiceClient(AbstractVoiceClient):
    """Voice client fed programmatically; used when no platform is configured and in tests."""

    def __init__(self, participants: Optional[List[VoiceParticipant]] = None,
                 local_user_id: Optional[str] = None, queue_size: int = 256):
        super().__init__(queue_size=queue_size)
        self.participants: List[VoiceParticipant] = list(participants or [])
        self._local_user_id = local_user_id
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def local_user_id(self) -> Optional[str]:
        return self._local_user_id

    async def connect(self) -> bool:
        self._connected = True
        return True

    async def current_roster(self) -> List[VoiceParticipant]:
        return list(self.participants)

    async def close(self) -> None:
        self._connected = False
