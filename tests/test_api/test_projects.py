from __future__ import annotations

import pytest

from tests.factories import create_frame, create_project


@pytest.mark.asyncio
async def test_create_project(async_client):
    res = await async_client.post(
        "/api/v1/projects",
        json={"title": "Chase", "script": "A cat chases a ball", "aspect_ratio": "9:16", "frame_count": 6},
    )
    assert res.status_code == 201
    data = res.json()
    assert data["title"] == "Chase"
    assert data["style"] == "Anime"
    assert data["aspect_ratio"] == "9:16"
    assert data["duration"] == 15
    assert data["frame_count"] == 6


@pytest.mark.asyncio
async def test_create_project_invalid_ratio(async_client):
    res = await async_client.post("/api/v1/projects", json={"title": "Bad", "aspect_ratio": "2:1"})
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_list_and_get_project(async_client, test_session):
    project = await create_project(test_session, title="First")
    await create_project(test_session, title="Second")

    res = await async_client.get("/api/v1/projects")
    assert res.status_code == 200
    assert {p["title"] for p in res.json()} == {"First", "Second"}

    res = await async_client.get(f"/api/v1/projects/{project.id}")
    assert res.status_code == 200
    assert res.json()["title"] == "First"


@pytest.mark.asyncio
async def test_get_project_not_found(async_client):
    res = await async_client.get("/api/v1/projects/99999")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_update_project(async_client, test_session):
    project = await create_project(test_session)

    res = await async_client.put(
        f"/api/v1/projects/{project.id}",
        json={"style": "Watercolor", "aspect_ratio": "1:1", "duration": 30},
    )
    assert res.status_code == 200
    data = res.json()
    assert data["style"] == "Watercolor"
    assert data["aspect_ratio"] == "1:1"
    assert data["duration"] == 30
    assert data["title"] == "Test Project"


@pytest.mark.asyncio
async def test_delete_project_removes_frames(async_client, test_session):
    project = await create_project(test_session)
    frame = await create_frame(test_session, project.id)

    res = await async_client.delete(f"/api/v1/projects/{project.id}")
    assert res.status_code == 204

    res = await async_client.get(f"/api/v1/frames/{frame.id}")
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_health(async_client):
    res = await async_client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_websocket_ping(ws_client):
    with ws_client.websocket_connect("/ws/projects/1") as ws:
        assert ws.receive_json()["type"] == "connected"
        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong", "data": {}}
