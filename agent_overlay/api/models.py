# agent_overlay/api/models.py
from pydantic import BaseModel, ConfigDict, Field

from ..storage.models import DEFAULT_REDIRECT_URI


class OperationResult(BaseModel):
    success: bool = True
    message: str = ""


class StatusResponse(BaseModel):
    """Connection overview shown on the dashboard."""

    model_config = ConfigDict(populate_by_name=True)

    valorant: bool
    discord: bool
    loop_state: str = Field(alias="loopState")
    connections: int


EMPTY_CONFIG = {"clientId": "", "clientSecret": "", "redirectUri": DEFAULT_REDIRECT_URI}
