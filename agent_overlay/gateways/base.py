# agent_overlay/gateways/base.py
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TYPE_CHECKING

import httpx

from .errors import (
    MalformedPayloadError,
    NoSessionError,
    UnreachableError,
    error_for_status,
)

if TYPE_CHECKING:
    from ..sessions.session_data import GameSession
    from ..sessions.session_manager import SessionManager

logger = logging.getLogger(__name__)


class BaseGateway(ABC):
    """
    Issues authenticated JSON requests for one side of the game API.

    Reads the current session from the SessionManager on every call and never
    writes to it. Failures are raised as GatewayError subclasses.
    """

    name: str = "gateway"

    def __init__(self, session_manager: "SessionManager", client: httpx.AsyncClient):
        self.session_manager = session_manager
        self.client = client
        logger.info(f"{type(self).__name__} initialized.")

    @abstractmethod
    def base_url(self, session: "GameSession") -> str:
        """Base URL that relative paths are resolved against."""
        pass

    @abstractmethod
    def headers(self, session: "GameSession") -> Dict[str, str]:
        """Headers sent with every request."""
        pass

    def _current_session(self) -> "GameSession":
        session = self.session_manager.session
        if session is None:
            raise NoSessionError(f"{self.name}: no authenticated game session.")
        return session

    async def call(self, path: str, method: str = "GET", body: Optional[Any] = None) -> Any:
        """Call `path` (relative to base_url, or an absolute URL) and return the decoded JSON."""
        session = self._current_session()
        url = path if path.startswith("http") else f"{self.base_url(session)}{path}"
        return await self._request(method, url, self.headers(session), body)

    async def _request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[Any] = None,
    ) -> Any:
        logger.debug(f"{self.name} request: {method} {url} | JSON body: {body is not None}")
        try:
            response = await self.client.request(method, url, headers=headers, json=body)
        except httpx.TimeoutException as e:
            raise UnreachableError(f"{self.name}: timed out calling {url}: {e}", url=url) from e
        except httpx.RequestError as e:
            raise UnreachableError(f"{self.name}: connection error calling {url}: {e}", url=url) from e

        if not 200 <= response.status_code < 300:
            error = error_for_status(
                response.status_code,
                f"{self.name}: {method} {url} -> {response.status_code}",
                url=url,
            )
            logger.debug(f"{self.name} HTTP error: {error.detail} | Body: {response.text[:300]}")
            raise error

        if not response.content:
            return {}
        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise MalformedPayloadError(
                f"{self.name}: could not decode JSON from {url}", url=url, status_code=response.status_code
            ) from e

        # Truncate long responses for logging to avoid log spam
        preview = str(payload)
        if len(preview) > 300:
            preview = preview[:300] + "..."
        logger.debug(f"{self.name} response: {method} {url} -> {response.status_code} | Body Preview: {preview}")
        return payload

    async def aclose(self) -> None:
        await self.client.aclose()

