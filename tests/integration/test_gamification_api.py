"""Gamification API tests: catalog, level table, per-user badges and progress."""

import pytest
from httpx import AsyncClient


async def _tag(client: AsyncClient, tag_id: str, plate: str, **extra) -> dict:
    body = {
        "submitter_id": "alice",
        "jurisdiction": "NY",
        "plate": plate,
        "reason": "Let me merge",
        "polarity": "positive",
        "tag_id": tag_id,
        **extra,
    }
    response = await client.post("/api/v1/tags", json=body)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_badge_catalog(client: AsyncClient) -> None:
    response = await client.get("/api/v1/badges")
    assert response.status_code == 200
    badges = response.json()["badges"]
    assert len(badges) == 16
    assert badges[0]["slug"] == "first-tag"
    balanced = next(b for b in badges if b["slug"] == "balanced-driver")
    assert balanced["criterion"] == {
        "kind": "compound",
        "counters": ["negative_received_count", "positive_received_count"],
        "threshold": 5,
        "closeness_bound": 2,
    }


@pytest.mark.asyncio
async def test_level_table(client: AsyncClient) -> None:
    data = (await client.get("/api/v1/levels")).json()
    assert data["max_level"] == 15
    assert data["levels"][1] == {"level": 2, "threshold": 100}
    assert data["levels"][-1] == {"level": 15, "threshold": 75000}


@pytest.mark.asyncio
async def test_user_badges_and_progress(client: AsyncClient, make_user) -> None:
    await make_user("alice", experience=80)
    result = await _tag(client, "t1", "XYZ789")
    assert result["leveled_up"] is True
    assert result["new_badges"] == ["first-tag", "first-positive", "rookie-reporter"]

    badges = (await client.get("/api/v1/users/alice/badges")).json()
    assert badges["total_available"] == 16
    assert badges["total_earned"] == 3
    assert [b["slug"] for b in badges["earned"]] == ["first-tag", "first-positive", "rookie-reporter"]

    progress = (await client.get("/api/v1/users/alice/progress")).json()
    assert progress["level"] == 2
    assert progress["experience"] == 110
    assert progress["exp_into_level"] == 10
    assert progress["next_threshold"] == 250


@pytest.mark.asyncio
async def test_experience_history(client: AsyncClient, make_user) -> None:
    await make_user("alice")
    await _tag(client, "t1", "XYZ789")
    await _tag(client, "t2", "QRS456", latitude=40.7, longitude=-74.0)

    data = (await client.get("/api/v1/users/alice/experience/history", params={"per_page": 1})).json()
    assert data["per_page"] == 1
    assert len(data["entries"]) == 1
    assert data["entries"][0]["source_id"] == "t2"
    assert data["entries"][0]["amount"] == 35

    page2 = (await client.get("/api/v1/users/alice/experience/history", params={"per_page": 1, "page": 2})).json()
    assert page2["entries"][0]["source_id"] == "t1"


@pytest.mark.asyncio
async def test_unknown_user_routes(client: AsyncClient) -> None:
    for path in ("badges", "progress", "experience/history"):
        response = await client.get(f"/api/v1/users/ghost/{path}")
        assert response.status_code == 404
