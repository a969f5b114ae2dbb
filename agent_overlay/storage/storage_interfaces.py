# agent_overlay/storage/storage_interfaces.py
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .models import VoiceCredentials


class AbstractSettingsStore(ABC):
    """Device-local settings: manual name overrides and voice credentials."""

    @abstractmethod
    async def get_overrides(self) -> Dict[str, str]:
        """Voice display name -> match display name."""
        pass

    @abstractmethod
    async def save_overrides(self, overrides: Dict[str, str]) -> None:
        """Replace the whole override table."""
        pass

    @abstractmethod
    async def get_session_credentials(self) -> Optional[VoiceCredentials]:
        """Saved voice platform credentials, or None when not set up."""
        pass

    @abstractmethod
    async def save_session_credentials(self, credentials: VoiceCredentials) -> None:
        pass

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the backing storage."""
        pass
