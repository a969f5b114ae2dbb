# tests/conftest.py
import base64
import json
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from agent_overlay.broadcast.interfaces import AbstractBroadcastSink
from agent_overlay.broadcast.models import EnrichedParticipant
from agent_overlay.sessions.session_data import GameSession
from agent_overlay.settings import Settings
from agent_overlay.voice.models import SpeakingEvent

PUUID = "puuid-self"
LOCAL_BASE = "https://127.0.0.1:55555"
GLZ_BASE = "https://glz-eu-1.eu.a.pvp.net"
PD_BASE = "https://pd.eu.a.pvp.net"
ASSETS_BASE = "https://assets.test/v1"
CLIENT_PLATFORM = "test-platform"


def make_session(**overrides: Any) -> GameSession:
    fields: Dict[str, Any] = {
        "local_base_url": LOCAL_BASE,
        "local_auth_header": "Basic cmlvdDpwdw==",
        "access_token": "access-1",
        "entitlement_token": "entitlement-1",
        "puuid": PUUID,
        "client_version": "release-test",
        "region": "eu",
        "shard": "eu",
    }
    fields.update(overrides)
    return GameSession(**fields)


def encode_private(payload: Dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


class MockRouter:
    """
    httpx.MockTransport handler keyed by (method, url).

    Each route holds a list of responses consumed in order; the last one
    repeats. A response is a `(status, json_body)` tuple, an exception
    instance to raise, or a callable taking the request. Unknown routes
    answer 404.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.requests: List[httpx.Request] = []

    def add(self, method: str, url: str, *responses: Any) -> None:
        self.routes[(method.upper(), url)] = list(responses)

    def count(self, method: str, url: str) -> int:
        return self.calls.count((method.upper(), url))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, str(request.url))
        self.calls.append(key)
        self.requests.append(request)
        responses = self.routes.get(key)
        if not responses:
            return httpx.Response(404, json={"errorCode": "RESOURCE_NOT_FOUND"})
        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        status_code, body = response
        if isinstance(body, (bytes, str)):
            return httpx.Response(status_code, content=body)
        return httpx.Response(status_code, json=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class RecordingSink(AbstractBroadcastSink):
    def __init__(self) -> None:
        self.states: List[List[EnrichedParticipant]] = []
        self.speaking: List[SpeakingEvent] = []

    async def publish_state(self, participants: List[EnrichedParticipant]) -> None:
        self.states.append(list(participants))

    async def publish_speaking(self, event: SpeakingEvent) -> None:
        self.speaking.append(event)

    @property
    def last_state(self) -> Optional[List[EnrichedParticipant]]:
        return self.states[-1] if self.states else None


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path / "data",
        riot_lockfile_path=tmp_path / "lockfile",
        game_log_path=tmp_path / "ShooterGame.log",
        public_api_base_url=ASSETS_BASE,
        poll_interval_seconds=0.01,
        voice_roster_timeout_seconds=0.5,
        voice_reconnect_interval_seconds=0,
    )


@pytest.fixture
def router() -> MockRouter:
    return MockRouter()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
