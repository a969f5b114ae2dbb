# agent_overlay/game/assets.py
import logging
from typing import Dict, Optional

import httpx

from .models import CHARACTER_SENTINEL

logger = logging.getLogger(__name__)


class AgentIconCatalog:
    """Character id -> icon URL table from the public reference data API."""

    def __init__(self, public_api_base_url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 5.0):
        self.public_api_base_url = public_api_base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._icons: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._icons)

    @property
    def is_empty(self) -> bool:
        return not self._icons

    async def load(self) -> int:
        """Fetch the agent list. Keeps the previous table on failure; returns the table size."""
        url = f"{self.public_api_base_url}/agents"
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            agents = response.json().get("data") or []
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error(f"AgentIconCatalog: Failed to fetch agent assets from {url}: {e}")
            return len(self._icons)

        icons: Dict[str, str] = {}
        for agent in agents:
            if isinstance(agent, dict) and agent.get("uuid") and agent.get("displayIcon"):
                icons[agent["uuid"].lower()] = agent["displayIcon"]
        if icons:
            self._icons = icons
        logger.info(f"AgentIconCatalog: Loaded {len(self._icons)} agents")
        return len(self._icons)

    async def ensure_loaded(self) -> None:
        if self.is_empty:
            await self.load()

    def resolve_icon(self, character_id: Optional[str]) -> Optional[str]:
        """Icon URL for a character, None when unknown or not locked yet."""
        if not character_id or character_id == CHARACTER_SENTINEL:
            return None
        return self._icons.get(character_id.lower())

    async def aclose(self) -> None:
        await self.client.aclose()
