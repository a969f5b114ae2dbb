# agent_overlay/voice/models.py
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class VoiceParticipant(BaseModel):
    """One member of the selected voice channel at a point in time."""

    model_config = ConfigDict(frozen=True)

    platform_id: str
    display_name: str = Field(description="Account username on the voice platform.")
    nickname: Optional[str] = Field(default=None, description="Server nickname, when set.")
    avatar_hash: Optional[str] = None
    is_muted: bool = False
    is_deafened: bool = False

    @property
    def shown_name(self) -> str:
        return self.nickname or self.display_name

    @property
    def avatar_url(self) -> Optional[str]:
        if not self.avatar_hash:
            return None
        return f"https://cdn.discordapp.com/avatars/{self.platform_id}/{self.avatar_hash}.png"

    @classmethod
    def from_voice_state(cls, member: Dict[str, Any]) -> "VoiceParticipant":
        """Build from a `voice_states[]` item of GET_SELECTED_VOICE_CHANNEL."""
        user = member.get("user") or {}
        voice_state = member.get("voice_state") or {}
        return cls(
            platform_id=str(user.get("id", "")),
            display_name=user.get("username") or "",
            nickname=member.get("nick") or None,
            avatar_hash=user.get("avatar") or None,
            is_muted=bool(voice_state.get("mute") or voice_state.get("self_mute")),
            is_deafened=bool(voice_state.get("deaf") or voice_state.get("self_deaf")),
        )


class SpeakingEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    participant_id: str
    is_speaking: bool


class RosterChanged(BaseModel):
    """The channel membership or a member's voice state changed."""

    model_config = ConfigDict(frozen=True)

    channel_id: Optional[str] = None


class ConnectionStateChanged(BaseModel):
    model_config = ConfigDict(frozen=True)

    connected: bool


VoiceEvent = Union[SpeakingEvent, RosterChanged, ConnectionStateChanged]
