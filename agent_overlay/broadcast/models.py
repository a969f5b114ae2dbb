# agent_overlay/broadcast/models.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EnrichedParticipant(BaseModel):
    """A voice participant with the character they are playing, as sent to viewers."""

    model_config = ConfigDict(populate_by_name=True)

    platform_id: str = Field(serialization_alias="id")
    display_name: str = Field(serialization_alias="username")
    avatar_url: Optional[str] = Field(default=None, serialization_alias="avatar")
    character_id: Optional[str] = Field(default=None, serialization_alias="agentId")
    character_icon: Optional[str] = Field(default=None, serialization_alias="agentImage")
    is_muted: bool = Field(default=False, serialization_alias="isMuted")
    is_deafened: bool = Field(default=False, serialization_alias="isDeaf")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
