# tests/test_phase_resolver.py
import pytest

from agent_overlay.game.models import MatchPhase
from agent_overlay.game.phase_resolver import PhaseResolver, phase_from_private
from agent_overlay.gateways.local_gateway import LocalGateway
from agent_overlay.sessions.session_manager import SessionManager

from conftest import CLIENT_PLATFORM, LOCAL_BASE, PUUID, encode_private, make_session

PRESENCES_URL = f"{LOCAL_BASE}/chat/v4/presences"


@pytest.fixture
def resolver(settings, router):
    manager = SessionManager(settings, local_client=router.client(), public_client=router.client())
    manager._session = make_session()
    return PhaseResolver(LocalGateway(manager, CLIENT_PLATFORM, client=router.client()))


def presences(private_payload, puuid=PUUID):
    return {
        "presences": [
            {"puuid": "someone-else", "private": encode_private({"sessionLoopState": "INGAME"})},
            {"puuid": puuid, "private": encode_private(private_payload)},
        ]
    }


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"sessionLoopState": "INGAME"}, MatchPhase.IN_MATCH),
        ({"sessionLoopState": "PREGAME"}, MatchPhase.PRE_MATCH),
        ({"sessionLoopState": "MENUS"}, MatchPhase.MENU),
        ({"matchPresenceData": {"sessionLoopState": "PREGAME"}}, MatchPhase.PRE_MATCH),
        ({"sessionLoopState": "REPLAY"}, MatchPhase.UNKNOWN),
        ({}, MatchPhase.UNKNOWN),
        ({"sessionLoopState": ["INGAME"]}, MatchPhase.UNKNOWN),
        ({"sessionLoopState": {"state": "INGAME"}}, MatchPhase.UNKNOWN),
        ({"matchPresenceData": {"sessionLoopState": ["PREGAME"]}}, MatchPhase.UNKNOWN),
    ],
)
def test_phase_from_private(payload, expected):
    assert phase_from_private(payload) is expected


@pytest.mark.asyncio
async def test_resolves_own_presence(resolver, router):
    router.add("GET", PRESENCES_URL, (200, presences({"sessionLoopState": "PREGAME"})))
    assert await resolver.resolve_phase() is MatchPhase.PRE_MATCH


@pytest.mark.asyncio
async def test_menu_presence_carries_party_id(resolver, router):
    payload = {"sessionLoopState": "MENUS", "partyPresenceData": {"partyId": "party-42"}}
    router.add("GET", PRESENCES_URL, (200, presences(payload)))

    snapshot = await resolver.resolve_presence()

    assert snapshot.phase is MatchPhase.MENU
    assert snapshot.party_id == "party-42"


@pytest.mark.asyncio
async def test_missing_own_presence_is_unknown(resolver, router):
    router.add("GET", PRESENCES_URL, (200, presences({"sessionLoopState": "INGAME"}, puuid="nobody")))
    assert await resolver.resolve_phase() is MatchPhase.UNKNOWN


@pytest.mark.asyncio
async def test_undecodable_private_blob_is_unknown(resolver, router):
    router.add("GET", PRESENCES_URL, (200, {"presences": [{"puuid": PUUID, "private": "%%%not-base64%%%"}]}))
    assert await resolver.resolve_phase() is MatchPhase.UNKNOWN


@pytest.mark.asyncio
async def test_presence_endpoint_failure_is_unknown(resolver, router):
    router.add("GET", PRESENCES_URL, (500, {}))
    snapshot = await resolver.resolve_presence()
    assert snapshot.phase is MatchPhase.UNKNOWN
    assert snapshot.party_id is None


@pytest.mark.asyncio
async def test_no_session_is_unknown(resolver, router):
    resolver.local_gateway.session_manager.invalidate()
    assert await resolver.resolve_phase() is MatchPhase.UNKNOWN
    assert router.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"sessionLoopState": ["INGAME"]},
        {"sessionLoopState": {"state": "INGAME"}},
    ],
)
async def test_unexpected_presence_shapes_are_unknown(resolver, router, payload):
    router.add("GET", PRESENCES_URL, (200, presences(payload)))
    snapshot = await resolver.resolve_presence()
    assert snapshot.phase is MatchPhase.UNKNOWN
    assert snapshot.party_id is None
