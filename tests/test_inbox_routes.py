"""HTTP render-feedback interface for mounted inbox feeds."""
from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.clients.notifications_client import AuthError, NotificationFilter, TransportError
from app.main import app
from app.routers.inbox import get_gateway_factory
from app.services.feed_registry import feed_registry
from conftest import FakeGateway


@pytest.fixture
def tokens() -> list[str | None]:
    return []


@pytest.fixture
def client(gateway: FakeGateway, tokens: list[str | None]) -> Iterator[TestClient]:
    def _factory(access_token: str | None) -> FakeGateway:
        tokens.append(access_token)
        return gateway

    app.dependency_overrides[get_gateway_factory] = lambda: _factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_gateway_factory, None)


@pytest.fixture
def mounted(client: TestClient, gateway: FakeGateway, make_record) -> str:
    gateway.script(None, [make_record("!A"), make_record("!A", read=True), make_record("!B")], "X")
    gateway.script("X", [make_record("!C", read=True)], None)
    response = client.post("/inbox/feeds", json={}, headers={"Authorization": "Bearer user-token"})
    assert response.status_code == 201
    return response.json()["feed_id"]


def test_mount_returns_first_page(client: TestClient, gateway: FakeGateway, tokens: list[str | None], make_record) -> None:
    gateway.script(None, [make_record("!A"), make_record("!A", read=True), make_record("!B", read=True)], "X")

    response = client.post("/inbox/feeds", json={}, headers={"Authorization": "Bearer user-token"})

    assert response.status_code == 201
    body = response.json()
    assert body["feed_id"]
    snapshot = body["snapshot"]
    assert snapshot["next_cursor"] == "X"
    assert snapshot["request_state"] == {"status": "success", "reason": None}
    assert [(group["conversation_id"], len(group["records"]), group["unread"]) for group in snapshot["groups"]] == [
        ("!A", 2, True),
        ("!B", 1, False),
    ]
    assert snapshot["groups"][0]["records"][0]["payload"]["content"]["mentions"] == ["@bob:example.org"]
    assert tokens == ["user-token"]
    assert client.get("/health").json()["mounted_feeds"] == 1


def test_mount_with_failing_gateway_reports_error_state(client: TestClient, gateway: FakeGateway) -> None:
    gateway.fail(None, AuthError("Session rejected with HTTP 401"), only=NotificationFilter.HIGHLIGHT)

    response = client.post("/inbox/feeds", json={"only_highlight": True})

    assert response.status_code == 201
    snapshot = response.json()["snapshot"]
    assert snapshot["groups"] == []
    assert snapshot["only_highlight"] is True
    assert snapshot["request_state"] == {"status": "error", "reason": "Session rejected with HTTP 401"}


def test_viewport_report_loads_next_page(client: TestClient, mounted: str) -> None:
    early = client.post(f"/inbox/feeds/{mounted}/viewport", json={"last_index": 0})
    assert early.json() == {"triggered": False}

    response = client.post(f"/inbox/feeds/{mounted}/viewport", json={"last_index": 1})
    assert response.json() == {"triggered": True}

    snapshot = client.get(f"/inbox/feeds/{mounted}").json()
    assert [group["conversation_id"] for group in snapshot["groups"]] == ["!A", "!B", "!C"]
    assert snapshot["next_cursor"] is None


def test_presence_report_is_accepted(client: TestClient, mounted: str) -> None:
    response = client.post(f"/inbox/feeds/{mounted}/presence", json={"focused": False, "at_top": False})

    assert response.status_code == 204


def test_filter_switch_reloads_from_head(client: TestClient, gateway: FakeGateway, mounted: str, make_record) -> None:
    gateway.script(None, [make_record("!HL")], None, only=NotificationFilter.HIGHLIGHT)

    response = client.post(f"/inbox/feeds/{mounted}/filter", json={"only_highlight": True})

    assert response.status_code == 200
    snapshot = response.json()
    assert snapshot["only_highlight"] is True
    assert [group["conversation_id"] for group in snapshot["groups"]] == ["!HL"]
    assert gateway.calls[-1][2] is NotificationFilter.HIGHLIGHT


def test_mark_read_clears_unread(client: TestClient, gateway: FakeGateway, mounted: str) -> None:
    response = client.post(f"/inbox/feeds/{mounted}/conversations/!A/read")

    assert response.status_code == 204
    assert gateway.mark_read_calls == ["!A"]
    groups = client.get(f"/inbox/feeds/{mounted}").json()["groups"]
    assert groups[0]["unread"] is False


@pytest.mark.parametrize(
    "error, status_code",
    [(TransportError("offline"), 502), (AuthError("expired"), 401)],
)
def test_mark_read_failure_keeps_local_state(
    client: TestClient, gateway: FakeGateway, mounted: str, error: Exception, status_code: int
) -> None:
    gateway.mark_read_error = error

    response = client.post(f"/inbox/feeds/{mounted}/conversations/!B/read")

    assert response.status_code == status_code
    groups = client.get(f"/inbox/feeds/{mounted}").json()["groups"]
    assert groups[1]["conversation_id"] == "!B"
    assert groups[1]["unread"] is False


def test_unmount_removes_feed(client: TestClient, mounted: str) -> None:
    assert client.delete(f"/inbox/feeds/{mounted}").status_code == 204
    assert client.get(f"/inbox/feeds/{mounted}").status_code == 404
    assert client.delete(f"/inbox/feeds/{mounted}").status_code == 404


def test_unknown_feed_returns_404(client: TestClient) -> None:
    assert client.get("/inbox/feeds/missing").status_code == 404
    assert client.post("/inbox/feeds/missing/viewport", json={"last_index": 0}).status_code == 404


def test_shutdown_stops_every_mounted_feed(gateway: FakeGateway, make_record) -> None:
    gateway.script(None, [make_record("!A")], None)
    app.dependency_overrides[get_gateway_factory] = lambda: (lambda access_token: gateway)
    try:
        with TestClient(app) as test_client:
            feed_ids = [test_client.post("/inbox/feeds", json={}).json()["feed_id"] for _ in range(2)]
            handles = [feed_registry.get(feed_id) for feed_id in feed_ids]
            assert all(handle is not None and handle.scheduler.timer_running for handle in handles)
    finally:
        app.dependency_overrides.pop(get_gateway_factory, None)

    assert all(handle.scheduler.timer_running is False for handle in handles)
    assert len(feed_registry) == 0
