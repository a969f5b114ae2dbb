# agent_overlay/game/models.py
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Character id reported for players who have not locked an agent yet
CHARACTER_SENTINEL = "00000000-0000-0000-0000-000000000000"


class MatchPhase(str, Enum):
    """Stage the local player is currently in."""

    MENU = "MENU"
    PRE_MATCH = "PRE_MATCH"
    IN_MATCH = "IN_MATCH"
    UNKNOWN = "UNKNOWN"


# Presence `sessionLoopState` values
LOOP_STATE_TO_PHASE = {
    "INGAME": MatchPhase.IN_MATCH,
    "PREGAME": MatchPhase.PRE_MATCH,
    "MENUS": MatchPhase.MENU,
}


class PresenceSnapshot(BaseModel):
    """What the local player's presence entry told us this cycle."""

    model_config = ConfigDict(frozen=True)

    phase: MatchPhase = MatchPhase.UNKNOWN
    party_id: Optional[str] = None


class RosterEntry(BaseModel):
    """One match participant and the character they picked."""

    model_config = ConfigDict(frozen=True)

    player_id: str = Field(description="Stable player identifier (puuid).")
    character_id: Optional[str] = Field(
        default=None,
        description="Chosen character; None or the all-zero sentinel while not locked."
    )
