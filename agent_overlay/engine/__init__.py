"""
The correlation engine: periodic roster join, speaking relay and the
container that owns every long-lived component.
"""

from .correlation_loop import CorrelationLoop, LoopState, MatchSnapshot
from .speaking import SpeakingRelay
from .builder import OverlayEngine, build_engine

__all__ = [
    "CorrelationLoop",
    "LoopState",
    "MatchSnapshot",
    "OverlayEngine",
    "SpeakingRelay",
    "build_engine",
]
