"""
Voice platform capability consumed by the correlation engine.
"""

from .models import ConnectionStateChanged, RosterChanged, SpeakingEvent, VoiceEvent, VoiceParticipant
from .interfaces import AbstractVoiceClient, InMemoryVoiceClient

__all__ = [
    "AbstractVoiceClient",
    "ConnectionStateChanged",
    "InMemoryVoiceClient",
    "RosterChanged",
    "SpeakingEvent",
    "VoiceEvent",
    "VoiceParticipant",
]
