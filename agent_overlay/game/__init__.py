"""
Game-side logic: phase detection, roster retrieval and name matching.
"""

from .models import CHARACTER_SENTINEL, MatchPhase, PresenceSnapshot, RosterEntry
from .assets import AgentIconCatalog
from .phase_resolver import PhaseResolver
from .roster_fetcher import RosterFetcher, build_trial_plan, trial_phases
from .name_matcher import build_roster_name_map, match_character

__all__ = [
    "AgentIconCatalog",
    "CHARACTER_SENTINEL",
    "MatchPhase",
    "PhaseResolver",
    "PresenceSnapshot",
    "RosterEntry",
    "RosterFetcher",
    "build_roster_name_map",
    "build_trial_plan",
    "match_character",
    "trial_phases",
]
