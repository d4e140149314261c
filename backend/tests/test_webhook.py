import json

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from conftest import create_enrollment, create_milestone, create_user
from hackhub.config import settings
from hackhub.models.enrollment import Activity
from hackhub.services import commit_processor
from hackhub.services.github import sign_payload, verify_signature

REPO = "https://github.com/octo/hello"


def _push(repo_url=REPO, *commits):
    return json.dumps({
        "ref": "refs/heads/main",
        "repository": {"html_url": repo_url, "full_name": "octo/hello"},
        "commits": [
            {"id": sha, "message": msg, "timestamp": "2026-10-01T10:00:00Z", "author": {"name": "x"}}
            for sha, msg in commits
        ],
    }).encode()


def test_verify_signature_rules():
    body = b'{"a":1}'
    good = sign_payload(body, "s3cret")
    assert good.startswith("sha256=")
    assert verify_signature(body, good, "s3cret")
    assert not verify_signature(body, good, "other")
    assert not verify_signature(body, None, "s3cret")
    assert not verify_signature(body + b" ", good, "s3cret")
    assert verify_signature(body, None, "")
    assert verify_signature(body, "sha256=whatever", None)


@pytest.mark.asyncio
async def test_push_records_activity(client, session):
    user = await create_user(session)
    e = await create_enrollment(session, user, REPO)
    await create_milestone(session, "#M1", points=2)

    body = _push(REPO + ".git/", ("a" * 40, "feat: init #M1"))
    r = await client.post("/webhooks/github", content=body, headers={"X-GitHub-Event": "push", "Content-Type": "application/json"})
    assert r.status_code == 200, r.text
    assert r.json() == {"processed": 1, "new_activities": 1, "errors": []}

    # redelivery of the same push
    r = await client.post("/webhooks/github", content=body, headers={"X-GitHub-Event": "push"})
    assert r.json() == {"processed": 1, "new_activities": 0, "errors": []}
    n = await session.scalar(select(func.count()).select_from(Activity).where(Activity.enrollment_id == e.id))
    assert n == 1


@pytest.mark.asyncio
async def test_unknown_repo_is_accepted(client):
    r = await client.post("/webhooks/github", content=_push("https://github.com/nobody/nothing", ("a" * 40, "#M1")),
                          headers={"X-GitHub-Event": "push"})
    assert r.status_code == 200
    assert r.json()["processed"] == 0


@pytest.mark.asyncio
async def test_ping_and_other_events(client):
    r = await client.post("/webhooks/github", content=b'{"zen": "hi"}', headers={"X-GitHub-Event": "ping"})
    assert r.status_code == 200
    assert r.json()["message"] == "pong"
    r = await client.post("/webhooks/github", content=b"{}", headers={"X-GitHub-Event": "issues"})
    assert r.status_code == 200
    assert r.json()["ignored"] == "issues"


@pytest.mark.asyncio
async def test_malformed_payload_is_400(client):
    r = await client.post("/webhooks/github", content=b'{"commits": []}', headers={"X-GitHub-Event": "push"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_secret_requires_valid_signature(client, session, monkeypatch):
    monkeypatch.setattr(settings, "github_webhook_secret", "s3cret")
    user = await create_user(session)
    await create_enrollment(session, user, REPO)
    await create_milestone(session, "#M1")
    body = _push(REPO, ("a" * 40, "#M1"))

    r = await client.post("/webhooks/github", content=body, headers={"X-GitHub-Event": "push"})
    assert r.status_code == 401
    r = await client.post("/webhooks/github", content=body,
                          headers={"X-GitHub-Event": "push", "X-Hub-Signature-256": sign_payload(body, "wrong")})
    assert r.status_code == 401
    r = await client.post("/webhooks/github", content=body,
                          headers={"X-GitHub-Event": "push", "X-Hub-Signature-256": sign_payload(body, "s3cret")})
    assert r.status_code == 200
    assert r.json()["new_activities"] == 1


@pytest.mark.asyncio
async def test_store_failure_is_isolated_per_enrollment(client, session, monkeypatch):
    broken = await create_enrollment(session, await create_user(session), REPO)
    healthy = await create_enrollment(session, await create_user(session), REPO)
    await create_milestone(session, "#M1")
    broken_id, healthy_id = broken.id, healthy.id

    real = commit_processor.record_activity

    async def fail_for_broken(session, **kw):
        if kw["enrollment_id"] == broken_id:
            raise OperationalError("INSERT", {}, Exception("disk full"))
        return await real(session, **kw)

    monkeypatch.setattr(commit_processor, "record_activity", fail_for_broken)
    r = await client.post("/webhooks/github", content=_push(REPO, ("a" * 40, "#M1")), headers={"X-GitHub-Event": "push"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["new_activities"] == 1
    [err] = body["errors"]
    assert err["enrollment_id"] == str(broken_id)
    assert err["kind"] == "persistence"
    for eid, expected in ((healthy_id, 1), (broken_id, 0)):
        n = await session.scalar(select(func.count()).select_from(Activity).where(Activity.enrollment_id == eid))
        assert n == expected


@pytest.mark.asyncio
async def test_bad_commit_timestamp_is_reported_not_raised(client, session):
    await create_enrollment(session, await create_user(session), REPO)
    await create_milestone(session, "#M1")
    body = json.dumps({
        "repository": {"html_url": REPO},
        "commits": [{"id": "a" * 40, "message": "#M1", "timestamp": "not-a-date"}],
    }).encode()
    r = await client.post("/webhooks/github", content=body, headers={"X-GitHub-Event": "push"})
    assert r.status_code == 200
    assert [e["kind"] for e in r.json()["errors"]] == ["malformed_input"]
