# agent_overlay/game/phase_resolver.py
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from ..gateways.errors import GatewayError
from ..gateways.local_gateway import LocalGateway
from .models import LOOP_STATE_TO_PHASE, MatchPhase, PresenceSnapshot

logger = logging.getLogger(__name__)

PRESENCES_PATH = "/chat/v4/presences"


def decode_private_presence(private_blob: str) -> Dict[str, Any]:
    """Decode the base64 JSON payload embedded in a presence entry."""
    decoded = base64.b64decode(private_blob)
    payload = json.loads(decoded.decode("utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("private presence payload is not a JSON object")
    return payload


def phase_from_private(payload: Dict[str, Any]) -> MatchPhase:
    loop_state = payload.get("sessionLoopState")
    if loop_state is None:
        match_presence = payload.get("matchPresenceData")
        if isinstance(match_presence, dict):
            loop_state = match_presence.get("sessionLoopState")
    if not isinstance(loop_state, str):
        return MatchPhase.UNKNOWN
    return LOOP_STATE_TO_PHASE.get(loop_state, MatchPhase.UNKNOWN)


def party_id_from_private(payload: Dict[str, Any]) -> Optional[str]:
    party_presence = payload.get("partyPresenceData")
    if isinstance(party_presence, dict):
        party_id = party_presence.get("partyId")
        if isinstance(party_id, str) and party_id:
            return party_id
    party_id = payload.get("partyId")
    return party_id if isinstance(party_id, str) and party_id else None


class PhaseResolver:
    """
    Works out which phase the local player is in from their chat presence.

    Presence is advisory: any failure resolves to UNKNOWN and the roster
    fetcher then tries every phase.
    """

    def __init__(self, local_gateway: LocalGateway):
        self.local_gateway = local_gateway

    async def resolve_presence(self) -> PresenceSnapshot:
        session = self.local_gateway.session_manager.session
        if session is None:
            return PresenceSnapshot()
        try:
            data = await self.local_gateway.call(PRESENCES_PATH)
            presences = data.get("presences") or []
            mine = next(
                (p for p in presences if isinstance(p, dict) and p.get("puuid") == session.puuid),
                None,
            )
            if mine is None or not mine.get("private"):
                logger.debug("resolve_presence: No private presence for local player.")
                return PresenceSnapshot()
            payload = decode_private_presence(mine["private"])
            snapshot = PresenceSnapshot(phase=phase_from_private(payload), party_id=party_id_from_private(payload))
        except (GatewayError, AttributeError, TypeError, ValueError, binascii.Error) as e:
            logger.debug(f"resolve_presence: Presence unavailable, phase UNKNOWN: {e}")
            return PresenceSnapshot()

        logger.debug(f"resolve_presence: phase={snapshot.phase.value}, party_id={snapshot.party_id}")
        return snapshot

    async def resolve_phase(self) -> MatchPhase:
        return (await self.resolve_presence()).phase
