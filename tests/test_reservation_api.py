from __future__ import annotations

import inspect
from dataclasses import replace

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from app import create_app


ADMIN_TOKEN = "secret-admin-token"


@pytest.fixture
def client(settings, clock):
    app = create_app(settings=settings, clock=clock)
    with TestClient(app) as test_client:
        yield test_client


def _login(client: TestClient, requester_id: str, admin_token: str | None = None) -> dict[str, str]:
    payload = {"requester_id": requester_id}
    if admin_token is not None:
        payload["admin_token"] = admin_token
    response = client.post("/login", json=payload)
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def admin_headers(client) -> dict[str, str]:
    return _login(client, "front-desk", ADMIN_TOKEN)


@pytest.fixture
def room_id(client, admin_headers) -> str:
    response = client.post(
        "/rooms",
        json={"room_number": "101", "room_type": "Standard"},
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["room_id"]


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["admin_login_enabled"] is True


def test_missing_or_unknown_bearer_is_401(client) -> None:
    assert client.get("/reservations").status_code == 401
    response = client.get("/reservations", headers={"Authorization": "Bearer not-a-session"})
    assert response.status_code == 401


def test_wrong_admin_token_is_401(client) -> None:
    response = client.post("/login", json={"requester_id": "mallory", "admin_token": "guess"})

    assert response.status_code == 401


def test_reservation_flow(client, admin_headers, room_id) -> None:
    guest_headers = _login(client, "guest-1")
    other_headers = _login(client, "guest-2")

    created = client.post(
        "/reservations",
        json={"room_id": room_id, "check_in": "2024-06-10", "check_out": "2024-06-12"},
        headers=guest_headers,
    )
    assert created.status_code == 201, created.text
    reservation = created.json()
    assert reservation["status"] == "PENDING"
    assert reservation["requester_id"] == "guest-1"

    conflict = client.post(
        "/reservations",
        json={"room_id": room_id, "check_in": "2024-06-11", "check_out": "2024-06-13"},
        headers=other_headers,
    )
    assert conflict.status_code == 409
    assert conflict.json()["detail"]["code"] == "ROOM_NOT_AVAILABLE"

    availability = client.get(
        f"/rooms/{room_id}/availability",
        params={"check_in": "2024-06-12", "check_out": "2024-06-14"},
        headers=other_headers,
    )
    assert availability.status_code == 200
    assert availability.json()["available"] is True

    forbidden = client.put(
        f"/reservations/{reservation['reservation_id']}/cancel",
        headers=other_headers,
    )
    assert forbidden.status_code == 403

    guest_confirm = client.put(
        f"/reservations/{reservation['reservation_id']}/confirm",
        headers=guest_headers,
    )
    assert guest_confirm.status_code == 403

    for action, expected in [
        ("confirm", "CONFIRMED"),
        ("check-in", "CHECKED_IN"),
        ("check-out", "CHECKED_OUT"),
    ]:
        response = client.put(
            f"/reservations/{reservation['reservation_id']}/{action}",
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == expected

    late_cancel = client.put(
        f"/reservations/{reservation['reservation_id']}/cancel",
        headers=guest_headers,
    )
    assert late_cancel.status_code == 400
    assert late_cancel.json()["detail"]["from"] == "CHECKED_OUT"


def test_invalid_range_is_400(client, room_id) -> None:
    guest_headers = _login(client, "guest-1")

    response = client.post(
        "/reservations",
        json={"room_id": room_id, "check_in": "2024-06-12", "check_out": "2024-06-10"},
        headers=guest_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_RANGE"


def test_unknown_room_and_reservation_are_404(client, admin_headers) -> None:
    room = client.post(
        "/reservations",
        json={"room_id": "nope", "check_in": "2024-06-10", "check_out": "2024-06-12"},
        headers=admin_headers,
    )
    assert room.status_code == 404
    assert room.json()["detail"]["code"] == "ROOM_NOT_FOUND"

    reservation = client.get("/reservations/nope", headers=admin_headers)
    assert reservation.status_code == 404


def test_guest_listing_is_scoped(client, admin_headers, room_id) -> None:
    guest_headers = _login(client, "guest-1")
    other_headers = _login(client, "guest-2")
    client.post(
        "/reservations",
        json={"room_id": room_id, "check_in": "2024-06-10", "check_out": "2024-06-12"},
        headers=guest_headers,
    )

    own = client.get("/reservations", headers=guest_headers).json()
    assert own["meta"]["total"] == 1
    assert client.get("/reservations", headers=other_headers).json()["meta"]["total"] == 0
    assert client.get("/reservations", headers=admin_headers).json()["meta"]["total"] == 1


def test_admin_reports_require_admin(client, admin_headers, room_id) -> None:
    guest_headers = _login(client, "guest-1")

    assert client.get("/admin/dashboard", headers=guest_headers).status_code == 403

    dashboard = client.get("/admin/dashboard", headers=admin_headers)
    assert dashboard.status_code == 200
    assert dashboard.json()["total_rooms"] == 1

    occupancy = client.get(
        "/admin/occupancy",
        params={"start_date": "2024-06-01", "end_date": "2024-06-03"},
        headers=admin_headers,
    )
    assert occupancy.status_code == 200
    assert len(occupancy.json()["series"]) == 3

    assert client.get("/admin/reservations/recent", headers=admin_headers).json() == []


def test_room_catalog_endpoints(client, admin_headers, room_id) -> None:
    assert [room["room_number"] for room in client.get("/rooms").json()] == ["101"]

    duplicate = client.post(
        "/rooms",
        json={"room_number": "101", "room_type": "Suite"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 409

    maintenance = client.put(
        f"/rooms/{room_id}/status",
        json={"status": "MAINTENANCE"},
        headers=admin_headers,
    )
    assert maintenance.status_code == 200
    assert client.get("/rooms", params={"status": "MAINTENANCE"}).json()[0]["room_id"] == room_id

    assert client.delete(f"/rooms/{room_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/rooms/{room_id}").status_code == 404


def test_logout_revokes_session(client) -> None:
    headers = _login(client, "guest-1")
    assert client.get("/reservations", headers=headers).status_code == 200

    assert client.post("/logout", headers=headers).status_code == 204
    assert client.get("/reservations", headers=headers).status_code == 401


def test_health_reports_configured_version(settings, clock) -> None:
    app = create_app(settings=replace(settings, app_version="2.3.4"), clock=clock)

    with TestClient(app) as test_client:
        assert test_client.get("/health").json()["version"] == "2.3.4"


def test_guest_login_never_grants_admin(client) -> None:
    headers = _login(client, "front-desk")

    assert client.get("/admin/dashboard", headers=headers).status_code == 403
    assert client.put("/reservations/any/confirm", headers=headers).status_code == 403


def test_storage_endpoints_run_in_threadpool(client) -> None:
    session_only = {"/login", "/logout", "/health"}
    routes = [
        route
        for route in client.app.routes
        if isinstance(route, APIRoute) and route.path not in session_only
    ]

    assert routes
    for route in routes:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path
