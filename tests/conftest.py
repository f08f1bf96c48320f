"""Shared fixtures: an in-memory history service and httpx transports onto it."""

import httpx
import pytest

from calculator_app.history import HistorySync
from history_service.store import HistoryStore
from history_service.webapp import create_app

BASE_URL = "http://history.test/api/history"


@pytest.fixture
def store():
    history_store = HistoryStore("sqlite://")
    yield history_store
    history_store.close()


@pytest.fixture
def server_app(store):
    app = create_app(store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def server_client(server_app):
    return server_app.test_client()


@pytest.fixture
def forwarding_transport(server_client):
    """Transport that hands every request to the history service test client."""

    def handler(request: httpx.Request) -> httpx.Response:
        response = server_client.open(
            request.url.path,
            method=request.method,
            data=request.content,
            content_type=request.headers.get("content-type"),
        )
        return httpx.Response(
            response.status_code,
            content=response.data,
            headers={"Content-Type": response.content_type},
        )

    return httpx.MockTransport(handler)


@pytest.fixture
def offline_transport():
    """Transport that behaves like an unreachable service."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return httpx.MockTransport(handler)


@pytest.fixture
def history(forwarding_transport):
    return HistorySync(BASE_URL, transport=forwarding_transport)


@pytest.fixture
def offline_history(offline_transport):
    return HistorySync(BASE_URL, transport=offline_transport)
