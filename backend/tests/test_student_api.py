from datetime import datetime, timezone

import pytest

from conftest import auth_headers, create_enrollment, create_milestone, create_user
from hackhub.models.enrollment import Activity


@pytest.mark.asyncio
async def test_enroll_upserts_single_enrollment(client, student):
    h = auth_headers(student)
    assert (await client.get("/enroll", headers=h)).json() is None

    r = await client.post("/enroll", headers=h, json={"repo_url": " https://github.com/Octo/Hello.git/ "})
    assert r.status_code == 200, r.text
    first = r.json()
    assert first["repo_url"] == "https://github.com/Octo/Hello"
    assert first["is_voting_candidate"] is False

    r = await client.post("/enroll", headers=h, json={"repo_url": "https://github.com/octo/other"})
    assert r.json()["id"] == first["id"]
    assert r.json()["repo_url"] == "https://github.com/octo/other"

    r = await client.post("/enroll", headers=h, json={"repo_url": ""})
    assert r.json()["repo_url"] is None


@pytest.mark.asyncio
async def test_enroll_rejects_non_github_url(client, student):
    r = await client.post("/enroll", headers=auth_headers(student), json={"repo_url": "https://gitlab.com/a/b"})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_enroll_requires_login(client):
    assert (await client.get("/enroll")).status_code == 401


@pytest.mark.asyncio
async def test_profile_patch_is_partial(client, student):
    h = auth_headers(student)
    r = await client.patch("/profile", headers=h, json={"name": "Grace", "repo_url": "https://github.com/g/h"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["user"]["name"] == "Grace"
    assert body["enrollment"]["repo_url"] == "https://github.com/g/h"

    r = await client.patch("/profile", headers=h, json={"image": "https://img.example.com/g.png"})
    body = r.json()
    assert body["user"]["name"] == "Grace"
    assert body["user"]["image"] == "https://img.example.com/g.png"
    assert body["enrollment"]["repo_url"] == "https://github.com/g/h"

    r = await client.patch("/profile", headers=h, json={"repo_url": ""})
    assert r.json()["enrollment"]["repo_url"] is None
    assert (await client.get("/profile", headers=h)).json()["enrollment"]["repo_url"] is None


@pytest.mark.asyncio
async def test_leaderboard_shape_and_headers(client, session):
    m1 = await create_milestone(session, "#M1", points=2, order=1)
    await create_milestone(session, "#M2", points=3, order=2)
    early = await create_enrollment(session, await create_user(session, name="Early"), "https://github.com/e/a")
    late = await create_enrollment(session, await create_user(session, name="Late"), "https://github.com/l/a")
    await create_enrollment(session, await create_user(session, email="idle@example.com"))
    for e, hour in ((early, 9), (late, 11)):
        session.add(Activity(enrollment_id=e.id, milestone_id=m1.id, commit_hash=f"{hour:040d}",
                             commit_message="#M1", timestamp=datetime(2026, 10, 1, hour, tzinfo=timezone.utc)))
    await session.commit()

    r = await client.get("/leaderboard")
    assert r.status_code == 200
    assert "no-store" in r.headers["cache-control"]
    board = r.json()
    assert board["is_voting_open"] is False
    assert board["total_milestones"] == 2
    assert board["event_deadline"] is None
    rows = board["rankings"]
    assert [row["name"] for row in rows] == ["Early", "Late", "idle@example.com"]
    assert [row["position"] for row in rows] == [1, 2, 3]
    assert rows[0]["score"] == 2 and rows[0]["completed_count"] == 1
    assert rows[0]["activities"][0]["commit_message"] == "#M1"
    assert rows[2]["last_activity_time"] is None
