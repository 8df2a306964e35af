"""Pytest configuration and shared fixtures for logship tests."""

from __future__ import annotations

from collections.abc import Callable, Generator

import pytest

from logship.client import LogglyClient, reset_shared_client
from tests.mocks import FakeSleep, RecordingEndpoint


@pytest.fixture
def fake_sleep() -> FakeSleep:
    """Return a sleep replacement that records delays."""
    return FakeSleep()


@pytest.fixture
def endpoint() -> RecordingEndpoint:
    """Return a mock endpoint answering 200 by default."""
    return RecordingEndpoint()


@pytest.fixture
def make_client(
    fake_sleep: FakeSleep,
) -> Generator[Callable[..., LogglyClient], None, None]:
    """Factory for clients wired to a mock endpoint; closes them afterwards."""
    clients: list[LogglyClient] = []

    def factory(endpoint: RecordingEndpoint, **kwargs) -> LogglyClient:
        kwargs.setdefault("token", "abc123")
        client = LogglyClient(transport=endpoint.transport, sleep=fake_sleep, **kwargs)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close(timeout=5)


@pytest.fixture
def shared():
    """Reset the process-wide client around a test."""
    reset_shared_client()
    yield
    reset_shared_client()
