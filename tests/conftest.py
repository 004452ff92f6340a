"""
Shared fixtures.

Nothing here touches the network: the vendor is replaced by an
httpx.MockTransport whose handler each test supplies.
"""

from typing import Callable

import httpx
import pytest

from sportstraining.core.sessions.store import SessionStore
from sportstraining.infrastructure.preferences.store import InMemoryPreferenceStore
from sportstraining.infrastructure.visualcoaching.client import (
    VisualCoachingClient,
    VisualCoachingConfig,
)

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingHandler:
    """Wrap a handler and keep every request it saw."""

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def preferences() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture
def store(preferences) -> SessionStore:
    return SessionStore(preferences)


@pytest.fixture
def logged_in_store(store) -> SessionStore:
    store.save("cookie-123")
    return store


@pytest.fixture
def make_client(store):
    """
    Build a VisualCoachingClient whose requests go to a handler.

    Returns (client, recorder) so tests can inspect what was sent.
    """
    clients: list[VisualCoachingClient] = []

    def factory(handler: Handler) -> tuple[VisualCoachingClient, RecordingHandler]:
        recorder = RecordingHandler(handler)
        client = VisualCoachingClient(
            VisualCoachingConfig(),
            store,
            transport=httpx.MockTransport(recorder),
        )
        clients.append(client)
        return client, recorder

    yield factory

    for client in clients:
        client.close()
