# agent_overlay/storage/models.py
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_REDIRECT_URI = "http://localhost"


class VoiceCredentials(BaseModel):
    """Voice platform application credentials entered through the dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(alias="clientId", min_length=1)
    client_secret: str = Field(alias="clientSecret", min_length=1)
    redirect_uri: str = Field(default=DEFAULT_REDIRECT_URI, alias="redirectUri")

    def masked(self) -> dict:
        """Wire form with the secret hidden."""
        data = self.model_dump(by_alias=True)
        data["clientSecret"] = "********"
        return data
