"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the registry, the hub, mock
connections and the FastAPI application.
"""

import os
from datetime import datetime, timezone

import pytest

# Keep the static frontend and the error log file out of test runs
os.environ.setdefault("STATIC_DIR", "")
os.environ.setdefault("LOG_FILE_PATH", os.devnull)

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
FIXED_TIME = "2026-10-19T12:00:00+00:00"


@pytest.fixture
def registry():
    """
    Provides an empty ConnectionRegistry.

    Returns:
        ConnectionRegistry: Registry instance
    """
    from relay.managers.connection_registry import ConnectionRegistry

    return ConnectionRegistry()


@pytest.fixture
def hub(registry):
    """
    Provides a BroadcastHub with a fixed clock.

    Args:
        registry: Fixture providing the registry the hub wraps

    Returns:
        BroadcastHub: Hub whose messages are stamped with FIXED_TIME
    """
    from relay.managers.broadcast_hub import BroadcastHub

    return BroadcastHub(registry=registry, clock=lambda: FIXED_NOW)


@pytest.fixture
def mock_connection():
    """
    Provides a factory for mock hub connections.

    Returns:
        Callable: `create_mock_connection`
    """
    from tests.mocks.connection_mocks import create_mock_connection

    return create_mock_connection


@pytest.fixture
def app(hub):
    """
    Provides a FastAPI application wired to the `hub` fixture.

    Args:
        hub: Fixture providing the hub

    Returns:
        FastAPI: Application instance
    """
    from relay import application

    return application(hub=hub)


@pytest.fixture
def client(app):
    """
    Provides a started TestClient.

    Entering the client runs the lifespan and shares one event loop between
    all WebSocket sessions, so they can use the same hub.

    Args:
        app: FastAPI application fixture

    Yields:
        TestClient: FastAPI test client instance
    """
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client
