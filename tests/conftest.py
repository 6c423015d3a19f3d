"""
Shared fixtures for gateway tests.
"""
import json
from typing import Callable, List

import httpx
import pytest

from corespark_gateway.core.credentials import CredentialStore, reset_credential_store
from corespark_gateway.core.dispatcher import DispatchCoordinator
from corespark_gateway.core.registry import ProviderRegistry
from corespark_gateway.models.conversation import ConversationMessage


class RecordingTransport:
    """httpx mock transport that records every outbound request."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.requests: List[httpx.Request] = []
        self._responder = responder
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


def json_response(status_code: int, body) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(status_code, json=body)


@pytest.fixture(autouse=True)
def _reset_default_store():
    reset_credential_store()
    yield
    reset_credential_store()


@pytest.fixture
def registry():
    return ProviderRegistry()


@pytest.fixture
def credentials():
    return CredentialStore({
        "openai": "sk-openai-test",
        "anthropic": "sk-ant-test",
        "google": "g-test",
    })


@pytest.fixture
def conversation():
    return [
        ConversationMessage.user("What is the capital of France?"),
        ConversationMessage.assistant("Paris."),
        ConversationMessage.user("And of Italy?"),
    ]


@pytest.fixture
def make_coordinator(registry):
    """Build a coordinator wired to a recording transport."""

    def _make(credentials, responder, config=None):
        recorder = RecordingTransport(responder)
        coordinator = DispatchCoordinator(
            credentials,
            registry=registry,
            config=config,
            transport=recorder.transport,
        )
        return coordinator, recorder

    return _make
