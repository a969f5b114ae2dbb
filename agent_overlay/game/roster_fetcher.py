# agent_overlay/game/roster_fetcher.py
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar

from ..gateways.errors import GatewayError, MalformedPayloadError, NoSessionError, NotFoundError
from ..gateways.local_gateway import LocalGateway
from ..gateways.remote_gateway import RefreshBudget, RemoteGateway
from .extractors import (
    extract_core_game_roster,
    extract_party_roster,
    extract_pre_game_roster,
    find_entry,
)
from .models import MatchPhase, RosterEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

NAME_SERVICE_PATH = "/name-service/v2/players"


class GatewayKind(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class PhaseEndpoint:
    """Two-step lookup for one phase: own id first, then the full document."""

    phase: MatchPhase
    player_path: str
    id_field: str
    document_path: str
    extract: Callable[[Any], List[RosterEntry]]


PHASE_ENDPOINTS: Dict[MatchPhase, PhaseEndpoint] = {
    MatchPhase.IN_MATCH: PhaseEndpoint(
        phase=MatchPhase.IN_MATCH,
        player_path="/core-game/v1/players/{puuid}",
        id_field="MatchID",
        document_path="/core-game/v1/matches/{match_id}",
        extract=extract_core_game_roster,
    ),
    MatchPhase.PRE_MATCH: PhaseEndpoint(
        phase=MatchPhase.PRE_MATCH,
        player_path="/pre-game/v1/players/{puuid}",
        id_field="MatchID",
        document_path="/pre-game/v1/matches/{match_id}",
        extract=extract_pre_game_roster,
    ),
    MatchPhase.MENU: PhaseEndpoint(
        phase=MatchPhase.MENU,
        player_path="/parties/v1/players/{puuid}",
        id_field="PartyID",
        document_path="/parties/v1/parties/{match_id}",
        extract=extract_party_roster,
    ),
}

FALLBACK_ORDER = (MatchPhase.IN_MATCH, MatchPhase.PRE_MATCH, MatchPhase.MENU)


@dataclass(frozen=True)
class TrialAttempt:
    gateway: GatewayKind
    endpoint: PhaseEndpoint


@dataclass
class AttemptOutcome:
    attempt: TrialAttempt
    entries: List[RosterEntry] = field(default_factory=list)
    error: Optional[GatewayError] = None


def trial_phases(phase: MatchPhase) -> List[MatchPhase]:
    """Known phase first, then the rest in fixed order; UNKNOWN uses the fixed order."""
    if phase in FALLBACK_ORDER:
        return [phase] + [p for p in FALLBACK_ORDER if p != phase]
    return list(FALLBACK_ORDER)


def build_trial_plan(phase: MatchPhase) -> List[TrialAttempt]:
    """The fallback chain: for each trial phase, local first, then remote."""
    plan: List[TrialAttempt] = []
    for trial_phase in trial_phases(phase):
        endpoint = PHASE_ENDPOINTS[trial_phase]
        plan.append(TrialAttempt(GatewayKind.LOCAL, endpoint))
        plan.append(TrialAttempt(GatewayKind.REMOTE, endpoint))
    return plan


class RosterFetcher:
    """
    Retrieves the participants of whatever the local player is currently in.

    Every lookup walks the same trial plan; the first attempt that yields an
    acceptable result wins and every failure just moves on to the next
    attempt, so callers only ever see an empty result, never an error.
    """

    def __init__(self, local_gateway: LocalGateway, remote_gateway: RemoteGateway):
        self.local_gateway = local_gateway
        self.remote_gateway = remote_gateway
        self.session_manager = local_gateway.session_manager

    async def _call(self, attempt: TrialAttempt, path: str, budget: RefreshBudget) -> Any:
        if attempt.gateway is GatewayKind.LOCAL:
            return await self.local_gateway.call(path)
        return await self.remote_gateway.call_with_refresh(path, budget=budget)

    async def run_attempt(self, attempt: TrialAttempt, party_id: Optional[str] = None) -> AttemptOutcome:
        session = self.session_manager.session
        if session is None:
            return AttemptOutcome(attempt, error=NoSessionError("No game session."))

        endpoint = attempt.endpoint
        budget = RefreshBudget()
        try:
            # Party id may already be known from presence
            if endpoint.phase is MatchPhase.MENU and party_id:
                document_id = party_id
            else:
                player_doc = await self._call(attempt, endpoint.player_path.format(puuid=session.puuid), budget)
                if not isinstance(player_doc, dict):
                    raise MalformedPayloadError(f"{endpoint.phase.value}: player lookup is not a JSON object")
                document_id = player_doc.get(endpoint.id_field)
                if not document_id:
                    raise NotFoundError(f"{endpoint.phase.value}: no {endpoint.id_field} for local player")

            document = await self._call(attempt, endpoint.document_path.format(match_id=document_id), budget)
            entries = endpoint.extract(document)
        except GatewayError as e:
            return AttemptOutcome(attempt, error=e)
        return AttemptOutcome(attempt, entries=entries)

    async def _first_accepted(
        self,
        phase: MatchPhase,
        accept: Callable[[List[RosterEntry]], Optional[T]],
        party_id: Optional[str] = None,
    ) -> Optional[T]:
        for attempt in build_trial_plan(phase):
            outcome = await self.run_attempt(attempt, party_id=party_id)
            label = f"{attempt.endpoint.phase.value}/{attempt.gateway.value}"
            if outcome.error is not None:
                logger.debug(f"RosterFetcher: {label} failed ({outcome.error.kind.value}): {outcome.error.message}")
                if isinstance(outcome.error, NoSessionError):
                    return None
                continue
            result = accept(outcome.entries)
            if result is not None:
                logger.debug(f"RosterFetcher: {label} answered with {len(outcome.entries)} entries.")
                return result
        return None

    async def fetch_roster(self, phase: MatchPhase, party_id: Optional[str] = None) -> List[RosterEntry]:
        """First non-empty roster along the trial plan, or [] when nothing answers."""
        roster = await self._first_accepted(phase, lambda entries: entries or None, party_id=party_id)
        return roster or []

    async def get_local_player_character(
        self, phase: MatchPhase, party_id: Optional[str] = None
    ) -> Optional[str]:
        """Character of the local player's own entry in the first roster that contains it."""
        session = self.session_manager.session
        if session is None:
            return None

        def own_character(entries: List[RosterEntry]) -> Optional[str]:
            entry = find_entry(entries, session.puuid)
            return entry.character_id if entry is not None else None

        return await self._first_accepted(phase, own_character, party_id=party_id)

    async def fetch_player_names(self, player_ids: Iterable[str]) -> Dict[str, str]:
        """Map player ids to `GameName#TagLine` through the remote name service."""
        ids = list(dict.fromkeys(player_ids))
        session = self.session_manager.session
        if not ids or session is None:
            return {}
        try:
            data = await self.remote_gateway.call_with_refresh(
                f"{session.pd_base_url}{NAME_SERVICE_PATH}", method="PUT", body=ids
            )
        except GatewayError as e:
            logger.info(f"fetch_player_names: Failed to fetch player names: {e.message}")
            return {}

        names: Dict[str, str] = {}
        for item in data if isinstance(data, list) else []:
            if not isinstance(item, dict):
                continue
            subject, game_name, tag_line = item.get("Subject"), item.get("GameName"), item.get("TagLine")
            if not all(isinstance(value, str) and value for value in (subject, game_name, tag_line)):
                continue
            names[subject] = f"{game_name}#{tag_line}"
        return names
