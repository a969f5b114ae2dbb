# agent_overlay/game/extractors.py
"""
Conversions from the three vendor roster documents into RosterEntry lists.

In-match rosters list players at the top level, pre-match rosters nest them
under the ally team, and party rosters list members.
"""
from typing import Any, Iterable, List, Mapping

from ..gateways.errors import MalformedPayloadError
from .models import RosterEntry


def _entries(items: Any, source: str) -> List[RosterEntry]:
    if not isinstance(items, list):
        raise MalformedPayloadError(f"{source}: expected a list of players, got {type(items).__name__}")
    entries: List[RosterEntry] = []
    for item in items:
        if not isinstance(item, Mapping) or not isinstance(item.get("Subject"), str):
            raise MalformedPayloadError(f"{source}: player entry without a Subject: {item!r}")
        character_id = item.get("CharacterID")
        if character_id is not None and not isinstance(character_id, str):
            raise MalformedPayloadError(f"{source}: CharacterID is not a string: {character_id!r}")
        entries.append(RosterEntry(player_id=item["Subject"], character_id=character_id or None))
    return entries


def _require_mapping(document: Any, source: str) -> Mapping[str, Any]:
    if not isinstance(document, Mapping):
        raise MalformedPayloadError(f"{source}: expected a JSON object, got {type(document).__name__}")
    return document


def extract_core_game_roster(document: Any) -> List[RosterEntry]:
    """`{"Players": [{"Subject", "CharacterID"}, ...]}`"""
    document = _require_mapping(document, "core-game")
    return _entries(document.get("Players"), "core-game")


def extract_pre_game_roster(document: Any) -> List[RosterEntry]:
    """`{"AllyTeam": {"Players": [...]}}`"""
    document = _require_mapping(document, "pre-game")
    ally_team = document.get("AllyTeam")
    if not isinstance(ally_team, Mapping):
        raise MalformedPayloadError("pre-game: AllyTeam missing from match document")
    return _entries(ally_team.get("Players"), "pre-game")


def extract_party_roster(document: Any) -> List[RosterEntry]:
    """`{"Members": [...]}`"""
    document = _require_mapping(document, "party")
    return _entries(document.get("Members"), "party")


def find_entry(entries: Iterable[RosterEntry], player_id: str):
    for entry in entries:
        if entry.player_id == player_id:
            return entry
    return None
