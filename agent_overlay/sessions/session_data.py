# agent_overlay/sessions/session_data.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime, timezone


class LockfileData(BaseModel):
    """Contents of the handshake file the game client writes on startup."""

    model_config = ConfigDict(frozen=True)

    name: str
    pid: int
    port: int
    password: str
    protocol: str = "https"

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://127.0.0.1:{self.port}"


class GameSession(BaseModel):
    """
    One authenticated connection to the local game client.

    Instances are immutable. A token refresh builds a complete replacement and
    the owner swaps it in with a single assignment, so a session is either
    fully authenticated or absent.
    """

    model_config = ConfigDict(frozen=True)

    local_base_url: str = Field(description="https://127.0.0.1:{port} of the running client.")
    local_auth_header: str = Field(description="Basic header derived from the lockfile password.")
    access_token: str = Field(description="Bearer token used against the remote service.")
    entitlement_token: str = Field(description="Sent as X-Riot-Entitlements-JWT.")
    puuid: str = Field(description="Stable identifier of the local player.")
    client_version: str
    region: str = "eu"
    shard: str = "eu"

    # Regional game server host scraped from the game log, preferred when present
    remote_base_url: Optional[str] = None

    refreshed_at: Optional[datetime] = None

    @property
    def glz_base_url(self) -> str:
        """Host for live game endpoints (core-game, pre-game, parties)."""
        if self.remote_base_url:
            return self.remote_base_url
        return f"https://glz-{self.region}-1.{self.shard}.a.pvp.net"

    @property
    def pd_base_url(self) -> str:
        """Host for player data endpoints (name service)."""
        return f"https://pd.{self.shard}.a.pvp.net"

    def with_tokens(self, access_token: str, entitlement_token: str) -> "GameSession":
        return self.model_copy(update={
            "access_token": access_token,
            "entitlement_token": entitlement_token,
            "refreshed_at": datetime.now(timezone.utc),
        })
