# tests/test_correlation_loop.py
import asyncio
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from agent_overlay.engine.correlation_loop import CorrelationLoop, LoopState
from agent_overlay.game.assets import AgentIconCatalog
from agent_overlay.game.models import CHARACTER_SENTINEL, MatchPhase, PresenceSnapshot, RosterEntry
from agent_overlay.voice.interfaces import InMemoryVoiceClient
from agent_overlay.voice.models import VoiceParticipant

from conftest import ASSETS_BASE

ICON_17 = "https://media.test/char-17.png"


class SlowVoiceClient(InMemoryVoiceClient):
    """Voice client whose roster takes `delay` seconds and records concurrent reads."""

    def __init__(self, participants, delay: float, local_user_id: Optional[str] = None):
        super().__init__(participants, local_user_id=local_user_id)
        self._connected = True
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self.reads = 0

    async def current_roster(self) -> List[VoiceParticipant]:
        self.in_flight += 1
        self.reads += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            return list(self.participants)
        finally:
            self.in_flight -= 1


def connected_voice(participants, local_user_id=None) -> InMemoryVoiceClient:
    voice = InMemoryVoiceClient(participants, local_user_id=local_user_id)
    voice._connected = True
    return voice


def make_catalog(router) -> AgentIconCatalog:
    router.add("GET", f"{ASSETS_BASE}/agents", (200, {"data": [{"uuid": "char-17", "displayIcon": ICON_17}]}))
    return AgentIconCatalog(ASSETS_BASE, client=router.client())


def make_loop(
    settings,
    router,
    sink,
    voice,
    roster=None,
    names=None,
    local_character=None,
    overrides=None,
    established=True,
    phase=MatchPhase.IN_MATCH,
):
    session_manager = MagicMock()
    session_manager.is_established = established
    session_manager.establish = AsyncMock(return_value=False)

    phase_resolver = MagicMock()
    phase_resolver.resolve_presence = AsyncMock(return_value=PresenceSnapshot(phase=phase))

    roster_fetcher = MagicMock()
    roster_fetcher.fetch_roster = AsyncMock(return_value=list(roster or []))
    roster_fetcher.get_local_player_character = AsyncMock(return_value=local_character)
    roster_fetcher.fetch_player_names = AsyncMock(return_value=dict(names or {}))

    store = MagicMock()
    store.get_overrides = AsyncMock(return_value=dict(overrides or {}))

    return CorrelationLoop(
        settings=settings,
        session_manager=session_manager,
        phase_resolver=phase_resolver,
        roster_fetcher=roster_fetcher,
        catalog=make_catalog(router),
        voice_client=voice,
        settings_store=store,
        sink=sink,
    )


@pytest.mark.asyncio
async def test_override_name_resolves_character_and_icon(settings, router, sink):
    voice = connected_voice([VoiceParticipant(platform_id="d-bob", display_name="bob", avatar_hash="abc")])
    loop = make_loop(
        settings, router, sink, voice,
        roster=[RosterEntry(player_id="p-rob", character_id="char-17")],
        names={"p-rob": "Robert#EUW"},
        overrides={"bob": "robert"},
    )
    await loop.catalog.load()

    assert await loop.request_cycle() is True

    [published] = sink.states
    assert [p.to_wire() for p in published] == [{
        "id": "d-bob",
        "username": "bob",
        "avatar": "https://cdn.discordapp.com/avatars/d-bob/abc.png",
        "agentId": "char-17",
        "agentImage": ICON_17,
        "isMuted": False,
        "isDeaf": False,
    }]
    assert loop.state is LoopState.ACTIVE
    loop.phase_resolver.resolve_presence.assert_awaited_once()
    loop.roster_fetcher.fetch_player_names.assert_awaited_once()


@pytest.mark.asyncio
async def test_self_identity_uses_local_character(settings, router, sink):
    voice = connected_voice([VoiceParticipant(platform_id="me", display_name="robert")], local_user_id="me")
    loop = make_loop(
        settings, router, sink, voice,
        roster=[RosterEntry(player_id="p-rob", character_id="char-17")],
        names={"p-rob": "Robert#EUW"},
        local_character=CHARACTER_SENTINEL,
    )
    await loop.catalog.load()

    await loop.request_cycle()

    [me] = sink.last_state
    assert me.character_id == CHARACTER_SENTINEL
    assert me.character_icon is None


@pytest.mark.asyncio
async def test_idle_loop_publishes_participants_without_characters(settings, router, sink):
    voice = connected_voice([VoiceParticipant(platform_id="d1", display_name="alice", nickname="Al")])
    loop = make_loop(settings, router, sink, voice, established=False)

    await loop.request_cycle()

    assert loop.state is LoopState.IDLE
    loop.session_manager.establish.assert_awaited_once()
    loop.roster_fetcher.fetch_roster.assert_not_awaited()
    [alice] = sink.last_state
    assert alice.display_name == "Al"
    assert alice.character_id is None


@pytest.mark.asyncio
async def test_idle_retries_asset_load_with_each_establish(settings, router, sink):
    voice = connected_voice([])
    loop = make_loop(settings, router, sink, voice, established=False)
    router.add("GET", f"{ASSETS_BASE}/agents", (500, {}))

    await loop.request_cycle()
    await loop.request_cycle()

    assert router.count("GET", f"{ASSETS_BASE}/agents") == 2
    assert loop.session_manager.establish.await_count == 2


@pytest.mark.asyncio
async def test_state_moves_between_active_and_degraded(settings, router, sink):
    voice = connected_voice([])
    loop = make_loop(settings, router, sink, voice, established=False)
    loop.session_manager.establish = AsyncMock(return_value=True)

    await loop.request_cycle()
    assert loop.state is LoopState.DEGRADED

    loop.session_manager.is_established = True
    loop.roster_fetcher.fetch_roster = AsyncMock(return_value=[RosterEntry(player_id="p1", character_id="c1")])
    await loop.request_cycle()
    assert loop.state is LoopState.ACTIVE

    loop.roster_fetcher.fetch_roster = AsyncMock(return_value=[])
    await loop.request_cycle()
    assert loop.state is LoopState.DEGRADED
    loop.session_manager.establish.assert_awaited_once()


@pytest.mark.asyncio
async def test_slow_voice_roster_skips_broadcast(settings, router, sink):
    settings.voice_roster_timeout_seconds = 0.05
    voice = SlowVoiceClient([VoiceParticipant(platform_id="d1", display_name="a")], delay=1.0)
    loop = make_loop(settings, router, sink, voice)

    assert await loop.request_cycle() is True

    assert sink.states == []
    assert loop.completed_cycles == 1


@pytest.mark.asyncio
async def test_no_overlapping_cycles(settings, router, sink):
    voice = SlowVoiceClient([VoiceParticipant(platform_id="d1", display_name="a")], delay=0.2)
    loop = make_loop(settings, router, sink, voice)

    first = asyncio.create_task(loop.request_cycle())
    await asyncio.sleep(0)

    assert loop.cycle_in_flight
    assert await loop.request_cycle() is False
    assert loop.trigger_cycle() is False
    assert await first is True

    assert voice.max_in_flight == 1
    assert loop.completed_cycles == 1
    assert loop.skipped_ticks == 2
    assert len(sink.states) == 1


@pytest.mark.asyncio
async def test_periodic_driver_skips_ticks_while_cycle_in_flight(settings, router, sink):
    settings.voice_roster_timeout_seconds = 5.0
    voice = SlowVoiceClient([VoiceParticipant(platform_id="d1", display_name="a")], delay=2.0)
    loop = make_loop(settings, router, sink, voice)

    loop.start()
    await asyncio.sleep(0.1)
    await loop.stop()

    assert voice.max_in_flight == 1
    assert voice.reads == 1
    assert loop.skipped_ticks >= 1


@pytest.mark.asyncio
@pytest.mark.parametrize("failing", ["fetch_roster", "get_local_player_character", "fetch_player_names"])
async def test_match_side_failure_still_publishes_voice_roster(settings, router, sink, failing):
    voice = connected_voice([VoiceParticipant(platform_id="d1", display_name="robert")])
    loop = make_loop(
        settings, router, sink, voice,
        roster=[RosterEntry(player_id="p-rob", character_id="char-17")],
        names={"p-rob": "Robert#EUW"},
    )
    setattr(loop.roster_fetcher, failing, AsyncMock(side_effect=TypeError("bad vendor data")))

    assert await loop.request_cycle() is True

    assert loop.completed_cycles == 1
    assert len(sink.states) == 1
    [participant] = sink.states[0]
    assert participant.platform_id == "d1"
    assert participant.character_id is None
    assert participant.character_icon is None


@pytest.mark.asyncio
async def test_phase_resolver_failure_still_publishes_voice_roster(settings, router, sink):
    voice = connected_voice([VoiceParticipant(platform_id="d1", display_name="a")])
    loop = make_loop(settings, router, sink, voice)
    loop.phase_resolver.resolve_presence = AsyncMock(side_effect=TypeError("unhashable type: 'list'"))

    await loop.request_cycle()

    assert [p.character_id for p in sink.states[0]] == [None]


@pytest.mark.asyncio
async def test_cycle_errors_do_not_escape(settings, router, sink):
    voice = connected_voice([VoiceParticipant(platform_id="d1", display_name="a")])
    loop = make_loop(settings, router, sink, voice)
    sink.publish_state = AsyncMock(side_effect=RuntimeError("boom"))

    assert await loop.request_cycle() is True

    assert loop.completed_cycles == 0
    assert loop.last_published == []
    assert not loop.cycle_in_flight


@pytest.mark.asyncio
async def test_override_read_failure_still_publishes(settings, router, sink):
    voice = connected_voice([VoiceParticipant(platform_id="d1", display_name="robert")])
    loop = make_loop(
        settings, router, sink, voice,
        roster=[RosterEntry(player_id="p-rob", character_id="char-17")],
        names={"p-rob": "Robert#EUW"},
    )
    loop.settings_store.get_overrides = AsyncMock(side_effect=OSError("disk gone"))

    await loop.request_cycle()

    assert sink.last_state[0].character_id == "char-17"


@pytest.mark.asyncio
async def test_disconnected_voice_client_is_reconnected(settings, router, sink):
    voice = InMemoryVoiceClient([VoiceParticipant(platform_id="d1", display_name="a")])
    loop = make_loop(settings, router, sink, voice)

    await loop.request_cycle()
    assert sink.states == []

    await loop._reconnect_task
    assert voice.connected

    await loop.request_cycle()
    assert len(sink.states) == 1
