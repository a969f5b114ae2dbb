# agent_overlay/engine/builder.py
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..broadcast.websocket_hub import WebSocketBroadcastHub
from ..game.assets import AgentIconCatalog
from ..game.phase_resolver import PhaseResolver
from ..game.roster_fetcher import RosterFetcher
from ..gateways.local_gateway import LocalGateway
from ..gateways.remote_gateway import RemoteGateway
from ..sessions.session_manager import SessionManager
from ..settings import Settings
from ..storage.json_settings_store import JsonFileSettingsStore
from ..storage.storage_interfaces import AbstractSettingsStore
from ..voice.discord_client import DiscordVoiceClient
from ..voice.interfaces import AbstractVoiceClient
from .correlation_loop import CorrelationLoop
from .speaking import SpeakingRelay

logger = logging.getLogger(__name__)


@dataclass
class OverlayEngine:
    """Every long-lived component of the application, owned in one place."""

    settings: Settings
    settings_store: AbstractSettingsStore
    session_manager: SessionManager
    local_gateway: LocalGateway
    remote_gateway: RemoteGateway
    phase_resolver: PhaseResolver
    roster_fetcher: RosterFetcher
    catalog: AgentIconCatalog
    hub: WebSocketBroadcastHub
    voice_client: AbstractVoiceClient
    loop: CorrelationLoop
    relay: SpeakingRelay
    _relay_task: Optional[asyncio.Task] = field(default=None, repr=False)

    async def start(self) -> None:
        await self.settings_store.initialize()
        await self.catalog.load()
        self._relay_task = asyncio.create_task(self.relay.run())
        self.loop.start()
        logger.info("OverlayEngine: Started.")

    async def shutdown(self) -> None:
        logger.info("OverlayEngine: Shutting down.")
        await self.loop.stop()
        if self._relay_task is not None:
            self._relay_task.cancel()
            await asyncio.gather(self._relay_task, return_exceptions=True)
            self._relay_task = None

        closers = [self.session_manager, self.local_gateway, self.remote_gateway, self.catalog]
        if hasattr(self.voice_client, "aclose"):
            closers.append(self.voice_client)
        else:
            await self.voice_client.close()
        for component in closers:
            try:
                await component.aclose()
            except Exception as e:
                logger.error(f"OverlayEngine: Teardown error in {type(component).__name__}: {e}", exc_info=True)
        logger.info("OverlayEngine: All components torn down.")


def _default_voice_client(settings: Settings, settings_store: AbstractSettingsStore) -> AbstractVoiceClient:
    return DiscordVoiceClient(
        credentials_provider=settings_store.get_session_credentials,
        queue_size=settings.voice_event_queue_size,
        request_timeout=settings.voice_roster_timeout_seconds,
    )


def build_engine(
    settings: Settings,
    voice_client: Optional[AbstractVoiceClient] = None,
    settings_store: Optional[AbstractSettingsStore] = None,
) -> OverlayEngine:
    """Wire the components together. Nothing is started and no I/O happens here."""
    settings_store = settings_store or JsonFileSettingsStore(settings.data_dir)
    voice_client = voice_client or _default_voice_client(settings, settings_store)

    timeout = settings.http_timeout_seconds
    session_manager = SessionManager(settings)
    local_gateway = LocalGateway(session_manager, settings.client_platform_token, timeout=timeout)
    remote_gateway = RemoteGateway(session_manager, settings.client_platform_token, timeout=timeout)
    phase_resolver = PhaseResolver(local_gateway)
    roster_fetcher = RosterFetcher(local_gateway, remote_gateway)
    catalog = AgentIconCatalog(settings.public_api_base_url, timeout=timeout)
    hub = WebSocketBroadcastHub()

    loop = CorrelationLoop(
        settings=settings,
        session_manager=session_manager,
        phase_resolver=phase_resolver,
        roster_fetcher=roster_fetcher,
        catalog=catalog,
        voice_client=voice_client,
        settings_store=settings_store,
        sink=hub,
    )
    relay = SpeakingRelay(voice_client.events, hub, on_roster_changed=loop.trigger_cycle)

    return OverlayEngine(
        settings=settings,
        settings_store=settings_store,
        session_manager=session_manager,
        local_gateway=local_gateway,
        remote_gateway=remote_gateway,
        phase_resolver=phase_resolver,
        roster_fetcher=roster_fetcher,
        catalog=catalog,
        hub=hub,
        voice_client=voice_client,
        loop=loop,
        relay=relay,
    )
