# agent_overlay/engine/speaking.py
import asyncio
import logging
from typing import Callable, Optional, Set

from ..broadcast.interfaces import AbstractBroadcastSink
from ..voice.models import ConnectionStateChanged, RosterChanged, SpeakingEvent, VoiceEvent

logger = logging.getLogger(__name__)


class SpeakingRelay:
    """
    Consumes voice events independently of the polling cycle.

    Owns only the set of participants currently speaking. Speaking changes are
    published immediately; roster changes ask the loop for an early cycle.
    """

    def __init__(
        self,
        events: "asyncio.Queue[VoiceEvent]",
        sink: AbstractBroadcastSink,
        on_roster_changed: Optional[Callable[[], object]] = None,
    ):
        self.events = events
        self.sink = sink
        self.on_roster_changed = on_roster_changed
        self.speaking: Set[str] = set()

    async def handle(self, event: VoiceEvent) -> None:
        if isinstance(event, SpeakingEvent):
            if event.is_speaking:
                self.speaking.add(event.participant_id)
            else:
                self.speaking.discard(event.participant_id)
            await self.sink.publish_speaking(event)
        elif isinstance(event, ConnectionStateChanged):
            logger.info(f"SpeakingRelay: Voice connection {'up' if event.connected else 'down'}.")
            if not event.connected:
                await self._clear_speaking()
        elif isinstance(event, RosterChanged):
            if self.on_roster_changed is not None:
                self.on_roster_changed()

    async def _clear_speaking(self) -> None:
        stopped, self.speaking = self.speaking, set()
        for participant_id in stopped:
            await self.sink.publish_speaking(SpeakingEvent(participant_id=participant_id, is_speaking=False))

    async def run(self) -> None:
        while True:
            event = await self.events.get()
            try:
                await self.handle(event)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"SpeakingRelay: Failed to handle {event!r}: {e}", exc_info=True)
            finally:
                self.events.task_done()
