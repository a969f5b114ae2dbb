"""
Device-local settings storage for the agent overlay.
"""

from .models import VoiceCredentials
from .storage_interfaces import AbstractSettingsStore
from .json_settings_store import JsonFileSettingsStore

__all__ = [
    "AbstractSettingsStore",
    "JsonFileSettingsStore",
    "VoiceCredentials",
]
