"""Tests for the project endpoints."""

import pytest

pytestmark = pytest.mark.integration


def test_create_and_list(api_client):
    response = api_client.post("/api/projects", json={"name": "Ops", "stages": ["Plan", "Run"]})

    assert response.status_code == 201
    assert response.json()["owner_email"] == "admin@acme.test"

    listed = api_client.get("/api/projects").json()
    assert [p["name"] for p in listed] == ["Launch", "Ops"]
    stages = api_client.get("/api/projects/Ops/stages").json()["stages"]
    assert [s["stage_name"] for s in stages] == ["Plan", "Run"]


def test_create_requires_admin(api_client, act_as):
    act_as("owner@acme.test")

    response = api_client.post("/api/projects", json={"name": "Ops"})

    assert response.status_code == 403


def test_archive_and_filter(api_client):
    response = api_client.put("/api/projects/Launch", json={"archived": True})
    assert response.status_code == 200
    assert response.json()["archived"] is True

    assert api_client.get("/api/projects").json() == []
    assert [p["name"] for p in api_client.get("/api/projects", params={"archived": "1"}).json()] == ["Launch"]
    assert len(api_client.get("/api/projects", params={"archived": "all"}).json()) == 1


def test_bad_archived_filter(api_client):
    response = api_client.get("/api/projects", params={"archived": "maybe"})

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_argument"


def test_member_sees_only_involved_projects(api_client, act_as):
    act_as("designer@acme.test")

    assert [p["name"] for p in api_client.get("/api/projects").json()] == ["Launch"]

    act_as("member@acme.test")
    assert api_client.get("/api/projects").json() == []
