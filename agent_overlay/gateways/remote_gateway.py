# agent_overlay/gateways/remote_gateway.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, TYPE_CHECKING

import httpx

from .base import BaseGateway
from .errors import GatewayError

if TYPE_CHECKING:
    from ..sessions.session_data import GameSession
    from ..sessions.session_manager import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class RefreshBudget:
    """How many token refreshes a sequence of related calls may still spend."""

    remaining: int = 1

    def take(self) -> bool:
        if self.remaining <= 0:
            return False
        self.remaining -= 1
        return True


class RemoteGateway(BaseGateway):
    """
    Talks to the vendor's regional web service. Used when the local client
    cannot answer; TLS is verified normally.
    """

    name = "RemoteGateway"

    def __init__(
        self,
        session_manager: "SessionManager",
        client_platform: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
    ):
        self.client_platform = client_platform
        super().__init__(session_manager, client or httpx.AsyncClient(timeout=timeout))

    def base_url(self, session: "GameSession") -> str:
        return session.glz_base_url

    def headers(self, session: "GameSession") -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {session.access_token}",
            "X-Riot-Entitlements-JWT": session.entitlement_token,
            "X-Riot-ClientVersion": session.client_version,
            "X-Riot-ClientPlatform": self.client_platform,
        }

    async def call_with_refresh(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Any] = None,
        budget: Optional[RefreshBudget] = None,
    ) -> Any:
        """
        Call once; on 401/403 refresh the session and retry once.

        A failure of the retry propagates without another refresh. Passing a
        shared `budget` caps refreshes across several calls (one per trial).
        """
        budget = budget if budget is not None else RefreshBudget()
        try:
            return await self.call(path, method, body)
        except GatewayError as e:
            if not e.should_refresh or not budget.take():
                raise
            logger.info(f"{self.name}: token rejected for {e.url} ({e.status_code}). Refreshing and retrying once.")

        if not await self.session_manager.refresh():
            logger.warning(f"{self.name}: token refresh failed, retrying {path} with the existing tokens.")
        return await self.call(path, method, body)
