# agent_overlay/gateways/local_gateway.py
import logging
from typing import Dict, Optional, TYPE_CHECKING

import httpx

from .base import BaseGateway

if TYPE_CHECKING:
    from ..sessions.session_data import GameSession
    from ..sessions.session_manager import SessionManager

logger = logging.getLogger(__name__)


def build_local_client(timeout: float) -> httpx.AsyncClient:
    # The client's localhost endpoint serves a self-signed certificate
    return httpx.AsyncClient(timeout=timeout, verify=False)


class LocalGateway(BaseGateway):
    """Talks to the game client's own HTTPS endpoint on 127.0.0.1."""

    name = "LocalGateway"

    def __init__(
        self,
        session_manager: "SessionManager",
        client_platform: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ):
        self.client_platform = client_platform
        super().__init__(session_manager, client or build_local_client(timeout))

    def base_url(self, session: "GameSession") -> str:
        return session.local_base_url

    def headers(self, session: "GameSession") -> Dict[str, str]:
        return {
            "Authorization": session.local_auth_header,
            "X-Riot-Entitlements-JWT": session.entitlement_token,
            "X-Riot-ClientVersion": session.client_version,
            "X-Riot-ClientPlatform": self.client_platform,
        }
