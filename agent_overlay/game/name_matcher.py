# agent_overlay/game/name_matcher.py
import logging
from typing import Dict, Iterable, Mapping, Optional

from ..voice.models import VoiceParticipant
from .models import RosterEntry

logger = logging.getLogger(__name__)

NAME_TAG_DELIMITER = "#"


def bare_name(full_name: str) -> str:
    """`Name#Tag` -> `Name`."""
    return full_name.split(NAME_TAG_DELIMITER, 1)[0]


def build_roster_name_map(entries: Iterable[RosterEntry], names: Mapping[str, str]) -> Dict[str, Optional[str]]:
    """
    Lower-cased full name and lower-cased bare name -> character id.

    Players whose name could not be resolved are left out.
    """
    roster_by_name: Dict[str, Optional[str]] = {}
    for entry in entries:
        full_name = names.get(entry.player_id)
        if not full_name:
            continue
        roster_by_name[full_name.lower()] = entry.character_id
        roster_by_name[bare_name(full_name).lower()] = entry.character_id
    return roster_by_name


def _override_target(display_name: str, overrides: Mapping[str, str]) -> Optional[str]:
    target = None
    for voice_name, match_name in overrides.items():
        # Later keys win when several differ only by case
        if voice_name.lower() == display_name and match_name:
            target = match_name.lower()
    return target


def _contains_either_way(a: str, b: str) -> bool:
    return a in b or b in a


def match_character(
    participant: VoiceParticipant,
    roster_by_name: Mapping[str, Optional[str]],
    local_player_id: Optional[str],
    overrides: Mapping[str, str],
    local_character: Optional[str] = None,
) -> Optional[str]:
    """
    Resolve the character a voice participant is playing.

    Priority, first hit wins, case-insensitive:
    1. the participant is the local user: their own character, even if None;
    2. manual override by display name: exact target, else first name containing it;
    3. exact display name, then nickname;
    4. containment either way against display name, then nickname.

    In steps 2 and 3 a name whose character is still unknown does not end
    the search.
    """
    if local_player_id and participant.platform_id == local_player_id:
        return local_character

    display_name = participant.display_name.lower()
    nickname = participant.nickname.lower() if participant.nickname else None

    target = _override_target(display_name, overrides)
    if target:
        if roster_by_name.get(target):
            return roster_by_name[target]
        partial = next((name for name in roster_by_name if target in name), None)
        if partial is not None and roster_by_name[partial]:
            return roster_by_name[partial]

    if roster_by_name.get(display_name):
        return roster_by_name[display_name]
    if nickname and roster_by_name.get(nickname):
        return roster_by_name[nickname]

    for known_name, character_id in roster_by_name.items():
        if display_name and _contains_either_way(known_name, display_name):
            return character_id
        if nickname and _contains_either_way(known_name, nickname):
            return character_id

    logger.debug(f"match_character: No match for '{participant.display_name}' ({participant.platform_id})")
    return None
