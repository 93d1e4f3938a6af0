"""Tests for the tenant member endpoints."""

import pytest

pytestmark = pytest.mark.integration


def test_list_members(api_client):
    response = api_client.get("/api/users")

    assert response.status_code == 200
    assert [(u["email"], u["role"]) for u in response.json()] == [
        ("admin@acme.test", "admin"),
        ("member@acme.test", "member"),
    ]


def test_members_endpoints_are_admin_only(api_client, act_as):
    act_as("member@acme.test")

    assert api_client.get("/api/users").status_code == 403
    assert api_client.post("/api/users", json={"email": "x@acme.test", "name": "X"}).status_code == 403


def test_invite_change_role_and_remove(api_client):
    invited = api_client.post("/api/users", json={"email": "Vic@Acme.test", "name": "Vic", "role": "viewer"})
    assert invited.status_code == 201
    assert invited.json()["email"] == "vic@acme.test"
    assert invited.json()["user_id"] == ""

    changed = api_client.put("/api/users", json={"email": "vic@acme.test", "role": "manager"})
    assert changed.status_code == 200
    assert changed.json()["role"] == "manager"

    removed = api_client.delete("/api/users", params={"email": "vic@acme.test"})
    assert removed.json() == {"ok": True}
    assert len(api_client.get("/api/users").json()) == 2


def test_invalid_role(api_client):
    response = api_client.post("/api/users", json={"email": "vic@acme.test", "name": "Vic", "role": "root"})

    assert response.status_code == 400
    assert response.json()["detail"] == "role must be one of: admin, manager, member, viewer"


def test_self_demotion_rejected(api_client):
    response = api_client.put("/api/users", json={"email": "admin@acme.test", "role": "viewer"})

    assert response.status_code == 400
    assert response.json()["detail"] == "You cannot change your own admin role"


def test_self_removal_rejected(api_client):
    response = api_client.delete("/api/users", params={"email": "admin@acme.test"})

    assert response.status_code == 400
    assert response.json()["detail"] == "You cannot remove yourself"


def test_change_role_unknown_member(api_client):
    response = api_client.put("/api/users", json={"email": "ghost@acme.test", "role": "member"})

    assert response.status_code == 404
