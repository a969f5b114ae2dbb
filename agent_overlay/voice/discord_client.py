# agent_overlay/voice/discord_client.py
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from pypresence import AioClient
from pypresence.exceptions import PyPresenceException

from ..storage.models import VoiceCredentials
from .interfaces import AbstractVoiceClient
from .models import ConnectionStateChanged, RosterChanged, SpeakingEvent, VoiceParticipant

logger = logging.getLogger(__name__)

DISCORD_TOKEN_URL = "https://discord.com/api/oauth2/token"
RPC_SCOPES = ["rpc", "rpc.voice.read"]
CHANNEL_EVENTS = ("VOICE_STATE_CREATE", "VOICE_STATE_UPDATE", "VOICE_STATE_DELETE", "SPEAKING_START", "SPEAKING_STOP")


class DiscordVoiceClient(AbstractVoiceClient):
    """
    Voice roster and speaking events from the local Discord client over RPC.

    Authorisation uses the application credentials the operator saved through
    the dashboard; without them the client stays disconnected.
    """

    def __init__(
        self,
        credentials_provider: Callable[[], Awaitable[Optional[VoiceCredentials]]],
        queue_size: int = 256,
        http_client: Optional[httpx.AsyncClient] = None,
        request_timeout: float = 2.0,
    ):
        super().__init__(queue_size=queue_size)
        self.credentials_provider = credentials_provider
        self.http_client = http_client or httpx.AsyncClient(timeout=10.0)
        self.request_timeout = request_timeout
        self._rpc: Optional[AioClient] = None
        self._user: Optional[Dict[str, Any]] = None
        self._channel_id: Optional[str] = None
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def local_user_id(self) -> Optional[str]:
        return str(self._user["id"]) if self._user and self._user.get("id") else None

    async def connect(self) -> bool:
        credentials = await self.credentials_provider()
        if credentials is None:
            logger.info("DiscordVoiceClient: No voice credentials saved yet. Waiting for setup via dashboard.")
            return False

        logger.info("DiscordVoiceClient: Connecting to Discord RPC...")
        try:
            rpc = AioClient(credentials.client_id, loop=asyncio.get_running_loop())
            await rpc.start()
            authorization = await rpc.authorize(credentials.client_id, RPC_SCOPES)
            access_token = await self._exchange_code(credentials, authorization["data"]["code"])
            authenticated = await rpc.authenticate(access_token)
        except (PyPresenceException, httpx.HTTPError, KeyError, TypeError, OSError) as e:
            logger.error(
                "DiscordVoiceClient: RPC connection failed. Check that the redirect URI is registered "
                f"for the application, the client id/secret are correct and Discord is running. Error: {e}"
            )
            self._set_connected(False)
            return False

        self._rpc = rpc
        self._user = (authenticated.get("data") or {}).get("user")
        logger.info(f"DiscordVoiceClient: Connected as {(self._user or {}).get('username')}")
        self._set_connected(True)

        await self._rpc.register_event("VOICE_CHANNEL_SELECT", self._on_channel_select)
        channel = await self._selected_channel()
        if channel and channel.get("id"):
            await self._subscribe_channel(str(channel["id"]))
        return True

    async def _exchange_code(self, credentials: VoiceCredentials, code: str) -> str:
        response = await self.http_client.post(
            DISCORD_TOKEN_URL,
            data={
                "client_id": credentials.client_id,
                "client_secret": credentials.client_secret,
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": credentials.redirect_uri,
            },
        )
        response.raise_for_status()
        return response.json()["access_token"]

    async def _selected_channel(self) -> Optional[Dict[str, Any]]:
        if self._rpc is None:
            return None
        payload = await asyncio.wait_for(self._rpc.get_selected_voice_channel(), timeout=self.request_timeout)
        return (payload or {}).get("data")

    async def _subscribe_channel(self, channel_id: str) -> None:
        if self._rpc is None or channel_id == self._channel_id:
            return
        self._channel_id = channel_id
        logger.info(f"DiscordVoiceClient: Subscribing to voice events for channel {channel_id}")
        handlers = {
            "VOICE_STATE_CREATE": self._on_voice_state,
            "VOICE_STATE_UPDATE": self._on_voice_state,
            "VOICE_STATE_DELETE": self._on_voice_state,
            "SPEAKING_START": self._on_speaking_start,
            "SPEAKING_STOP": self._on_speaking_stop,
        }
        for event in CHANNEL_EVENTS:
            try:
                await self._rpc.register_event(event, handlers[event], {"channel_id": channel_id})
            except PyPresenceException as e:
                logger.error(f"DiscordVoiceClient: Failed to subscribe to {event}: {e}")
        self.emit(RosterChanged(channel_id=channel_id))

    async def _on_channel_select(self, data: Dict[str, Any]) -> None:
        channel_id = (data or {}).get("channel_id")
        if channel_id:
            await self._subscribe_channel(str(channel_id))
        self.emit(RosterChanged(channel_id=channel_id))

    async def _on_voice_state(self, data: Dict[str, Any]) -> None:
        voice_state = (data or {}).get("voice_state") or {}
        user_id = ((data or {}).get("user") or {}).get("id")
        # A muted member cannot still be speaking
        if user_id and (voice_state.get("mute") or voice_state.get("self_mute") or voice_state.get("suppress")):
            self.emit(SpeakingEvent(participant_id=str(user_id), is_speaking=False))
        self.emit(RosterChanged(channel_id=self._channel_id))

    async def _on_speaking_start(self, data: Dict[str, Any]) -> None:
        self.emit(SpeakingEvent(participant_id=str(data["user_id"]), is_speaking=True))

    async def _on_speaking_stop(self, data: Dict[str, Any]) -> None:
        self.emit(SpeakingEvent(participant_id=str(data["user_id"]), is_speaking=False))

    async def current_roster(self) -> List[VoiceParticipant]:
        if self._rpc is None:
            return []
        try:
            channel = await self._selected_channel()
        except PyPresenceException as e:
            logger.debug(f"DiscordVoiceClient: GET_SELECTED_VOICE_CHANNEL failed: {e}")
            return []
        if not channel:
            return []
        return [VoiceParticipant.from_voice_state(m) for m in channel.get("voice_states") or []]

    def _set_connected(self, connected: bool) -> None:
        if connected != self._connected:
            self._connected = connected
            self.emit(ConnectionStateChanged(connected=connected))

    async def close(self) -> None:
        rpc, self._rpc = self._rpc, None
        self._channel_id = None
        if rpc is not None:
            # AioClient.close() would also close the running event loop
            writer = getattr(rpc, "sock_writer", None)
            if writer is not None:
                writer.close()
        self._set_connected(False)

    async def aclose(self) -> None:
        await self.close()
        await self.http_client.aclose()
