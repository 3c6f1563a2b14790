"""End-to-end checks of the HTTP surface: auth transport, error envelopes, routing."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from helpdesk.core.config import settings
from helpdesk.crud import tickets as ticket_store
from helpdesk.db.session import get_db
from helpdesk.main import app

from conftest import DEFAULT_PASSWORD

TOKEN_HEADER = settings.SESSION_TOKEN_HEADER


@pytest.fixture()
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _login(client, email, password=DEFAULT_PASSWORD):
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    # Tests pass the token explicitly; drop the cookie so calls stay independent.
    client.cookies.clear()
    return {TOKEN_HEADER: response.json()["session_token"]}


def test_setup_then_login_flow(client):
    assert client.get("/api/v1/status").json() == {"setup": False, "user": None}

    payload = {"name": "Ada Admin", "username": "ada", "email": "ada@example.com", "password": "s3cret-pass"}
    created = client.post("/api/v1/setup", json=payload)
    assert created.status_code == 200
    assert created.json()["role"] == "admin"

    again = client.post("/api/v1/setup", json=payload)
    assert again.status_code == 403
    assert again.json()["code"] == "setup_done"

    headers = _login(client, "ada@example.com", "s3cret-pass")
    status = client.get("/api/v1/status", headers=headers).json()
    assert status["setup"] is True
    assert status["user"]["username"] == "ada"


def test_login_failure_envelope(client, member):
    response = client.post("/api/v1/auth/login", json={"email": member.email, "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json() == {"code": "invalid_credentials", "message": "invalid email or password"}


def test_protected_routes_require_a_session(client, member):
    response = client.get("/api/v1/tickets")
    assert response.status_code == 401
    assert response.json()["code"] == "session_invalid"

    bogus = client.get("/api/v1/tickets", headers={TOKEN_HEADER: "not-a-real-token"})
    assert bogus.status_code == 401


def test_cookie_is_accepted_in_place_of_header(client, member):
    response = client.post("/api/v1/auth/login", json={"email": member.email, "password": DEFAULT_PASSWORD})
    assert settings.SESSION_COOKIE_NAME in response.cookies

    assert client.get("/api/v1/tickets").status_code == 200

    assert client.post("/api/v1/auth/logout").status_code == 204
    client.cookies.clear()
    token = response.json()["session_token"]
    assert client.get("/api/v1/tickets", headers={TOKEN_HEADER: token}).status_code == 401


def test_ticket_lifecycle(client, member, other_member):
    headers = _login(client, member.email)
    created = client.post(
        "/api/v1/tickets",
        headers=headers,
        json={
            "title": "Printer not working",
            "description": "It prints blank pages.",
            "labels": ["urgent", "bug"],
            "assignees": [other_member.id],
        },
    )
    assert created.status_code == 201, created.text
    body = created.json()
    assert body["labels"] == ["bug", "urgent"]
    assert body["assignees"] == [other_member.id]
    assert body["description"] == "It prints blank pages."
    assert body["status"] == "open"
    assert body["created_by"]["id"] == member.id

    ticket_id = body["id"]
    patched = client.patch(f"/api/v1/tickets/{ticket_id}", headers=headers, json={"labels": ["bug"]})
    assert patched.json()["labels"] == ["bug"]
    assert patched.json()["assignees"] == [other_member.id]

    found = client.get("/api/v1/tickets", headers=headers, params={"q": "label:bug printer"})
    assert [t["id"] for t in found.json()] == [ticket_id]

    other_headers = _login(client, other_member.email)
    forbidden = client.patch(f"/api/v1/tickets/{ticket_id}", headers=other_headers, json={"title": "Mine"})
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "permission_denied"

    closed = client.patch(f"/api/v1/tickets/{ticket_id}/status", headers=other_headers, json={"status": "closed"})
    assert closed.status_code == 200
    assert closed.json()["status"] == "closed"

    comment = client.post(
        f"/api/v1/tickets/{ticket_id}/comments", headers=other_headers, json={"content": "Fixed the toner."}
    )
    assert comment.status_code == 201
    comments = client.get(f"/api/v1/tickets/{ticket_id}/comments", headers=headers).json()
    assert [c["content"] for c in comments] == ["It prints blank pages.", "Fixed the toner."]

    assert client.delete(f"/api/v1/tickets/{ticket_id}", headers=headers).status_code == 204
    missing = client.get(f"/api/v1/tickets/{ticket_id}", headers=headers)
    assert missing.status_code == 404
    assert missing.json() == {"code": "not_found", "message": "ticket not found"}


def test_malformed_search_is_a_field_error(client, member):
    headers = _login(client, member.email)
    response = client.get("/api/v1/tickets", headers=headers, params={"q": "a:b:c"})
    assert response.status_code == 400
    assert response.json() == {
        "code": "validation_error",
        "message": "Invalid query",
        "details": {"errors": [{"field": "q", "validator": "search"}]},
    }


def test_request_body_validation_envelope(client, member):
    headers = _login(client, member.email)
    response = client.post("/api/v1/tickets", headers=headers, json={"title": "x", "description": "short"})
    assert response.status_code == 422
    fields = {error["field"] for error in response.json()["details"]["errors"]}
    assert fields == {"title", "description"}


def test_user_admin_endpoints(client, admin, member):
    admin_headers = _login(client, admin.email)
    member_headers = _login(client, member.email)

    payload = {"name": "New Hire", "username": "newhire", "email": "new@example.com", "password": "welcome-aboard"}
    assert client.post("/api/v1/users", headers=member_headers, json=payload).status_code == 403

    created = client.post("/api/v1/users", headers=admin_headers, json=payload)
    assert created.status_code == 201
    assert created.json()["role"] == "member"

    duplicate = client.post("/api/v1/users", headers=admin_headers, json={**payload, "username": "another"})
    assert duplicate.status_code == 400
    assert duplicate.json()["details"] == {"errors": [{"field": "email", "validator": "unique"}]}

    last_admin = client.patch(f"/api/v1/users/{admin.id}", headers=admin_headers, json={"role": "member"})
    assert last_admin.status_code == 403
    assert last_admin.json()["code"] == "last_admin"

    new_id = created.json()["id"]
    assert client.delete(f"/api/v1/users/{new_id}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/v1/users/{new_id}", headers=admin_headers).status_code == 404


def test_labels_and_assignments_endpoints(client, member, other_member):
    headers = _login(client, member.email)
    first = client.post("/api/v1/labels", headers=headers, json={"name": "network"})
    second = client.post("/api/v1/labels", headers=headers, json={"name": "network"})
    assert first.status_code == 201
    assert first.json()["id"] == second.json()["id"]
    assert [label["name"] for label in client.get("/api/v1/labels", headers=headers).json()] == ["network"]

    ticket = client.post(
        "/api/v1/tickets", headers=headers, json={"title": "Wifi flaky", "description": "Drops every few minutes."}
    ).json()
    assignment = client.post(
        f"/api/v1/tickets/{ticket['id']}/assignments", headers=headers, json={"user_id": other_member.id}
    )
    assert assignment.status_code == 201
    assert client.get(f"/api/v1/tickets/{ticket['id']}", headers=headers).json()["assignees"] == [other_member.id]

    removed = client.delete(f"/api/v1/assignments/{assignment.json()['id']}", headers=headers)
    assert removed.status_code == 204
    assert client.get(f"/api/v1/tickets/{ticket['id']}", headers=headers).json()["assignees"] == []


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc123"})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "abc123"


def test_driver_error_on_a_read_uses_the_storage_envelope(client, member, monkeypatch):
    headers = _login(client, member.email)

    def broken(db, predicates=()):
        raise OperationalError("SELECT tickets.id FROM tickets", {}, Exception("database is locked"))

    monkeypatch.setattr(ticket_store, "list_tickets", broken)

    response = client.get("/api/v1/tickets", headers=headers)
    assert response.status_code == 500
    assert response.json() == {"code": "storage_failure", "message": "storage operation failed"}
