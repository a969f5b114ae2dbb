# agent_overlay/sessions/session_manager.py
import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from ..settings import Settings
from .discovery import (
    LockfileError,
    build_local_auth_header,
    find_deployment_region,
    read_lockfile,
    region_to_shard,
    scrape_glz_url,
)
from .session_data import GameSession

logger = logging.getLogger(__name__)

ENTITLEMENTS_PATH = "/entitlements/v1/token"
EXTERNAL_SESSIONS_PATH = "/product-session/v1/external-sessions"


class SessionManager:
    """
    Owns the authenticated GameSession for the local game client.

    `establish()` runs the full discovery (lockfile, token, region, client
    version, log scrape); `refresh()` only re-requests the token pair. Neither
    raises: failure is reported as False, since the game may simply not be
    running.
    """

    def __init__(
        self,
        settings: Settings,
        local_client: Optional[httpx.AsyncClient] = None,
        public_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings
        # Local endpoint uses a self-signed certificate
        self.local_client = local_client or httpx.AsyncClient(timeout=settings.http_timeout_seconds, verify=False)
        self.public_client = public_client or httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        self._session: Optional[GameSession] = None
        self._refresh_lock = asyncio.Lock()
        logger.info(f"SessionManager initialized with lockfile path: {settings.riot_lockfile_path}")

    @property
    def session(self) -> Optional[GameSession]:
        return self._session

    @property
    def is_established(self) -> bool:
        return self._session is not None

    def invalidate(self) -> None:
        if self._session is not None:
            logger.info("SessionManager: invalidating game session.")
        self._session = None

    async def establish(self) -> bool:
        """Discover the running game client and authenticate against it."""
        try:
            lockfile = read_lockfile(self.settings.riot_lockfile_path)
        except LockfileError as e:
            logger.debug(f"establish: {e}")
            self.invalidate()
            return False

        base_url = lockfile.base_url
        auth_header = build_local_auth_header(lockfile.password)
        try:
            access_token, entitlement_token, puuid = await self._fetch_tokens(base_url, auth_header)
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"establish: Handshake with local client on port {lockfile.port} failed: {e}")
            self.invalidate()
            return False

        region, shard = await self._fetch_region(base_url, auth_header)
        client_version = await self._fetch_client_version()
        remote_base_url = scrape_glz_url(self.settings.game_log_path)

        # Assign only once every field is known
        self._session = GameSession(
            local_base_url=base_url,
            local_auth_header=auth_header,
            access_token=access_token,
            entitlement_token=entitlement_token,
            puuid=puuid,
            client_version=client_version,
            region=region,
            shard=shard,
            remote_base_url=remote_base_url,
        )
        logger.info(
            f"establish: Connected to local API on port {lockfile.port} - PUUID: {puuid}, "
            f"Region: {region}, Shard: {shard}, Version: {client_version}"
        )
        return True

    async def refresh(self) -> bool:
        """Obtain a new access/entitlement token pair without re-reading the lockfile."""
        async with self._refresh_lock:
            current = self._session
            if current is None:
                logger.info("refresh: No session to refresh.")
                return False
            try:
                access_token, entitlement_token, _ = await self._fetch_tokens(
                    current.local_base_url, current.local_auth_header
                )
            except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"refresh: Token refresh failed: {e}")
                return False

            # A concurrent establish() may have replaced the session meanwhile
            if self._session is current:
                self._session = current.with_tokens(access_token, entitlement_token)
                logger.info("refresh: Auth tokens refreshed.")
            return True

    async def _fetch_tokens(self, base_url: str, auth_header: str) -> Tuple[str, str, str]:
        response = await self.local_client.get(
            f"{base_url}{ENTITLEMENTS_PATH}", headers={"Authorization": auth_header}
        )
        response.raise_for_status()
        data: Dict[str, Any] = response.json()
        access_token = data["accessToken"]
        entitlement_token = data["token"]
        subject = data["subject"]
        if not (access_token and entitlement_token and subject):
            raise ValueError("Entitlements response is missing accessToken, token or subject.")
        return access_token, entitlement_token, subject

    async def _fetch_region(self, base_url: str, auth_header: str) -> Tuple[str, str]:
        try:
            response = await self.local_client.get(
                f"{base_url}{EXTERNAL_SESSIONS_PATH}", headers={"Authorization": auth_header}
            )
            response.raise_for_status()
            region = find_deployment_region(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"_fetch_region: Failed to read deployment region, defaulting to eu: {e}")
            return region_to_shard(None)

        if region is None:
            logger.info("_fetch_region: No deployment argument found. Region defaulted to eu.")
        return region_to_shard(region)

    async def _fetch_client_version(self) -> str:
        url = f"{self.settings.public_api_base_url}/version"
        try:
            response = await self.public_client.get(url)
            response.raise_for_status()
            version = (response.json().get("data") or {}).get("riotClientVersion")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"_fetch_client_version: Failed to fetch client version from {url}: {e}")
            version = None
        return version or self.settings.default_client_version

    async def aclose(self) -> None:
        await self.local_client.aclose()
        await self.public_client.aclose()
