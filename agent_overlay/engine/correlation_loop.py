# agent_overlay/engine/correlation_loop.py
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from ..broadcast.interfaces import AbstractBroadcastSink
from ..broadcast.models import EnrichedParticipant
from ..game.assets import AgentIconCatalog
from ..game.models import RosterEntry
from ..game.name_matcher import build_roster_name_map, match_character
from ..game.phase_resolver import PhaseResolver
from ..game.roster_fetcher import RosterFetcher
from ..sessions.session_manager import SessionManager
from ..settings import Settings
from ..storage.storage_interfaces import AbstractSettingsStore
from ..voice.interfaces import AbstractVoiceClient
from ..voice.models import VoiceParticipant

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    DEGRADED = "degraded"


@dataclass
class MatchSnapshot:
    """What the game side contributed to one cycle."""

    roster: List[RosterEntry] = field(default_factory=list)
    local_character: Optional[str] = None
    names: Dict[str, str] = field(default_factory=dict)


class CorrelationLoop:
    """
    Periodically joins the voice roster with the current match roster and
    publishes the result.

    At most one cycle is in flight: a tick that fires while a cycle is still
    running is skipped, never queued. Nothing raised inside a cycle escapes
    `request_cycle()`.
    """

    def __init__(
        self,
        settings: Settings,
        session_manager: SessionManager,
        phase_resolver: PhaseResolver,
        roster_fetcher: RosterFetcher,
        catalog: AgentIconCatalog,
        voice_client: AbstractVoiceClient,
        settings_store: AbstractSettingsStore,
        sink: AbstractBroadcastSink,
    ):
        self.settings = settings
        self.session_manager = session_manager
        self.phase_resolver = phase_resolver
        self.roster_fetcher = roster_fetcher
        self.catalog = catalog
        self.voice_client = voice_client
        self.settings_store = settings_store
        self.sink = sink

        self.state = LoopState.IDLE
        self.completed_cycles = 0
        self.skipped_ticks = 0
        self.last_published: List[EnrichedParticipant] = []

        self._cycle_lock = asyncio.Lock()
        self._cycle_task: Optional[asyncio.Task] = None
        self._driver_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._last_reconnect_attempt: Optional[float] = None

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_lock.locked() or (self._cycle_task is not None and not self._cycle_task.done())

    # --- Game side ---

    async def _ensure_session(self) -> bool:
        if self.session_manager.is_established:
            return True
        await self.catalog.ensure_loaded()
        if not await self.session_manager.establish():
            return False
        if self.state is LoopState.IDLE:
            logger.info("CorrelationLoop: Game session established, loop ACTIVE.")
            self.state = LoopState.ACTIVE
        return True

    async def _fetch_match_side(self) -> MatchSnapshot:
        if not await self._ensure_session():
            return MatchSnapshot()

        presence = await self.phase_resolver.resolve_presence()
        roster, local_character = await asyncio.gather(
            self.roster_fetcher.fetch_roster(presence.phase, party_id=presence.party_id),
            self.roster_fetcher.get_local_player_character(presence.phase, party_id=presence.party_id),
        )

        new_state = LoopState.ACTIVE if roster else LoopState.DEGRADED
        if new_state is not self.state:
            logger.info(f"CorrelationLoop: {self.state.value} -> {new_state.value} (phase {presence.phase.value}).")
            self.state = new_state

        names = await self.roster_fetcher.fetch_player_names(entry.player_id for entry in roster) if roster else {}
        return MatchSnapshot(roster=roster, local_character=local_character, names=names)

    async def _safe_fetch_match_side(self) -> MatchSnapshot:
        """Match side of a cycle; any failure degrades to an empty snapshot so voice output continues."""
        try:
            return await self._fetch_match_side()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"CorrelationLoop: Match side failed, publishing without characters: {e}", exc_info=True)
            if self.state is not LoopState.IDLE:
                self.state = LoopState.DEGRADED
            return MatchSnapshot()

    # --- Voice side ---

    def _schedule_voice_reconnect(self) -> None:
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        now = time.monotonic()
        if (
            self._last_reconnect_attempt is not None
            and now - self._last_reconnect_attempt < self.settings.voice_reconnect_interval_seconds
        ):
            return
        first_attempt = self._last_reconnect_attempt is None
        self._last_reconnect_attempt = now
        coro = self.voice_client.connect() if first_attempt else self.voice_client.reconnect()
        self._reconnect_task = asyncio.create_task(coro)

    def request_voice_reconnect(self) -> None:
        """Reconnect the voice client now, ignoring the rate limit; used after credentials change."""
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._last_reconnect_attempt = time.monotonic()
        self._reconnect_task = asyncio.create_task(self.voice_client.reconnect())

    async def _fetch_voice_roster(self) -> Optional[List[VoiceParticipant]]:
        """Current voice roster, or None when it cannot be read in time."""
        if not self.voice_client.connected:
            self._schedule_voice_reconnect()
            return None
        try:
            return await asyncio.wait_for(
                self.voice_client.current_roster(), timeout=self.settings.voice_roster_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"CorrelationLoop: Voice roster not available within {self.settings.voice_roster_timeout_seconds}s."
            )
        except Exception as e:
            logger.error(f"CorrelationLoop: Failed to read voice roster: {e}", exc_info=True)
        return None

    # --- Cycle ---

    async def _read_overrides(self) -> Dict[str, str]:
        try:
            return await self.settings_store.get_overrides()
        except Exception as e:
            logger.error(f"CorrelationLoop: Failed to read name overrides: {e}", exc_info=True)
            return {}

    def _enrich(
        self,
        participant: VoiceParticipant,
        roster_by_name: Dict[str, Optional[str]],
        overrides: Dict[str, str],
        local_character: Optional[str],
    ) -> EnrichedParticipant:
        character_id = match_character(
            participant,
            roster_by_name,
            self.voice_client.local_user_id,
            overrides,
            local_character=local_character,
        )
        return EnrichedParticipant(
            platform_id=participant.platform_id,
            display_name=participant.shown_name,
            avatar_url=participant.avatar_url,
            character_id=character_id,
            character_icon=self.catalog.resolve_icon(character_id),
            is_muted=participant.is_muted,
            is_deafened=participant.is_deafened,
        )

    async def run_cycle(self) -> None:
        voice_roster, match = await asyncio.gather(self._fetch_voice_roster(), self._safe_fetch_match_side())
        if voice_roster is None:
            logger.debug("CorrelationLoop: No voice roster this cycle, keeping previous state.")
            return

        overrides = await self._read_overrides()
        roster_by_name = build_roster_name_map(match.roster, match.names)
        participants = [
            self._enrich(participant, roster_by_name, overrides, match.local_character)
            for participant in voice_roster
        ]
        await self.sink.publish_state(participants)
        self.last_published = participants
        logger.debug(
            f"CorrelationLoop: Published {len(participants)} participants "
            f"({sum(1 for p in participants if p.character_id)} with a character)."
        )

    async def request_cycle(self) -> bool:
        """Run one cycle now unless one is already running. Returns whether it ran."""
        if self._cycle_lock.locked():
            self.skipped_ticks += 1
            logger.debug("CorrelationLoop: Cycle still in flight, skipping.")
            return False
        async with self._cycle_lock:
            try:
                await self.run_cycle()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"CorrelationLoop: Cycle failed: {e}", exc_info=True)
            else:
                self.completed_cycles += 1
        return True

    def trigger_cycle(self) -> bool:
        """Start a cycle in the background unless one is already in flight."""
        if self.cycle_in_flight:
            self.skipped_ticks += 1
            logger.debug("CorrelationLoop: Cycle still in flight, tick skipped.")
            return False
        self._cycle_task = asyncio.create_task(self.request_cycle())
        return True

    # --- Driver ---

    async def run(self) -> None:
        logger.info(f"CorrelationLoop: Polling every {self.settings.poll_interval_seconds}s.")
        while True:
            self.trigger_cycle()
            await asyncio.sleep(self.settings.poll_interval_seconds)

    def start(self) -> None:
        if self._driver_task is None or self._driver_task.done():
            self._driver_task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        tasks = [t for t in (self._driver_task, self._cycle_task, self._reconnect_task) if t is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._driver_task = self._cycle_task = self._reconnect_task = None
        logger.info(f"CorrelationLoop: Stopped after {self.completed_cycles} cycles ({self.skipped_ticks} skipped ticks).")
