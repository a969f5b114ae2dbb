# tests/test_assets.py
import pytest

from agent_overlay.game.assets import AgentIconCatalog
from agent_overlay.game.models import CHARACTER_SENTINEL

from conftest import ASSETS_BASE

AGENTS = {
    "data": [
        {"uuid": "ABC-1", "displayIcon": "https://media.test/abc.png"},
        {"uuid": "def-2", "displayIcon": "https://media.test/def.png"},
        {"uuid": "no-icon"},
    ]
}


@pytest.mark.asyncio
async def test_load_and_resolve(router):
    router.add("GET", f"{ASSETS_BASE}/agents", (200, AGENTS))
    catalog = AgentIconCatalog(ASSETS_BASE, client=router.client())

    assert await catalog.load() == 2
    assert catalog.resolve_icon("abc-1") == "https://media.test/abc.png"
    assert catalog.resolve_icon("DEF-2") == "https://media.test/def.png"
    assert catalog.resolve_icon("no-icon") is None


@pytest.mark.asyncio
async def test_unlocked_and_missing_characters_have_no_icon(router):
    catalog = AgentIconCatalog(ASSETS_BASE, client=router.client())
    assert catalog.resolve_icon(None) is None
    assert catalog.resolve_icon("") is None
    assert catalog.resolve_icon(CHARACTER_SENTINEL) is None


@pytest.mark.asyncio
async def test_failed_reload_keeps_previous_table(router):
    router.add("GET", f"{ASSETS_BASE}/agents", (200, AGENTS), (500, {}))
    catalog = AgentIconCatalog(ASSETS_BASE, client=router.client())
    await catalog.load()

    assert await catalog.load() == 2
    assert catalog.resolve_icon("abc-1") == "https://media.test/abc.png"


@pytest.mark.asyncio
async def test_ensure_loaded_only_fetches_while_empty(router):
    router.add("GET", f"{ASSETS_BASE}/agents", (500, {}), (200, AGENTS))
    catalog = AgentIconCatalog(ASSETS_BASE, client=router.client())

    await catalog.ensure_loaded()
    assert catalog.is_empty
    await catalog.ensure_loaded()
    await catalog.ensure_loaded()

    assert len(catalog) == 2
    assert router.count("GET", f"{ASSETS_BASE}/agents") == 2
