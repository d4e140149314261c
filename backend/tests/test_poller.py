import httpx
import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from conftest import commit_item, create_enrollment, create_milestone, create_user
from hackhub.models.enrollment import Activity
from hackhub.services import commit_processor
from hackhub.services.github import GitHubClient, RateLimited, RepoNotFound, UpstreamTimeout
from hackhub.services.poller import poll_all


def _client(transport):
    return GitHubClient(base_url="https://api.github.test", token="", transport=transport)


async def _enroll(session, n, repo=None):
    user = await create_user(session, email=f"s{n}@example.com", name=f"Student {n}")
    return await create_enrollment(session, user, repo or f"https://github.com/team{n}/app")


@pytest.mark.asyncio
async def test_one_missing_repo_does_not_stop_the_others(session, github_routes, github_transport):
    await create_milestone(session, "#M1")
    enrollments = [await _enroll(session, i) for i in range(10)]
    for i in range(10):
        if i != 4:
            github_routes[f"team{i}/app"] = (200, [commit_item(f"{i:040d}", "feat #M1")], None)

    async with _client(github_transport) as client:
        summary = await poll_all(session, client)

    assert summary["total_repos"] == 10
    assert len(summary["results"]) == 9
    assert len(summary["errors"]) == 1
    err = summary["errors"][0]
    assert err["kind"] == "not_found"
    assert err["repo"] == "https://github.com/team4/app"
    assert err["enrollment_id"] == str(enrollments[4].id)
    assert err["retryable"] is True
    assert summary["message"] == "Polled 10 repositories. Found 9 new milestone completions."
    assert len(github_transport.calls) == 10


@pytest.mark.asyncio
async def test_result_entry_and_window(session, github_routes, github_transport):
    await create_milestone(session, "#M1")
    await _enroll(session, 1)
    github_routes["team1/app"] = (200, [commit_item("a" * 40, "wip"), commit_item("b" * 40, "done #m1")], None)

    async with _client(github_transport) as client:
        summary = await poll_all(session, client, window=7)

    [res] = summary["results"]
    assert res["student"] == "Student 1"
    assert res["commits_fetched"] == 2
    assert res["commits_processed"] == 2
    assert res["new_activities"] == 1
    assert github_transport.calls[0].url.params["per_page"] == "7"


@pytest.mark.asyncio
async def test_known_commits_are_not_reprocessed(session, github_routes, github_transport):
    await create_milestone(session, "#M1")
    e = await _enroll(session, 1)
    github_routes["team1/app"] = (200, [commit_item("a" * 40, "#M1")], None)

    async with _client(github_transport) as client:
        first = await poll_all(session, client)
        second = await poll_all(session, client)

    assert first["results"][0]["new_activities"] == 1
    assert second["results"][0]["commits_processed"] == 0
    assert second["results"][0]["new_activities"] == 0
    n = await session.scalar(select(func.count()).select_from(Activity).where(Activity.enrollment_id == e.id))
    assert n == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("status,body,headers", [
    (429, {"message": "slow down"}, None),
    (403, {"message": "API rate limit exceeded for 1.2.3.4"}, {"x-ratelimit-remaining": "12"}),
    (403, {"message": "Forbidden"}, {"x-ratelimit-remaining": "0"}),
])
async def test_rate_limit_is_classified(session, github_routes, github_transport, status, body, headers):
    await _enroll(session, 1)
    github_routes["team1/app"] = (status, body, headers)
    async with _client(github_transport) as client:
        summary = await poll_all(session, client)
    assert [e["kind"] for e in summary["errors"]] == ["rate_limited"]


@pytest.mark.asyncio
async def test_plain_forbidden_is_upstream(session, github_routes, github_transport):
    await _enroll(session, 1)
    github_routes["team1/app"] = (403, {"message": "Resource not accessible"}, {"x-ratelimit-remaining": "40"})
    async with _client(github_transport) as client:
        summary = await poll_all(session, client)
    assert [e["kind"] for e in summary["errors"]] == ["upstream"]


@pytest.mark.asyncio
async def test_timeout_and_malformed_url(session, github_routes, github_transport):
    await _enroll(session, 1)
    await _enroll(session, 2, repo="https://gitlab.com/team2/app")
    github_routes["team1/app"] = (200, httpx.ReadTimeout("timed out"), None)

    async with _client(github_transport) as client:
        summary = await poll_all(session, client)

    kinds = sorted((e["kind"], e["retryable"]) for e in summary["errors"])
    assert kinds == [("malformed_input", False), ("timeout", True)]
    assert summary["results"] == []


@pytest.mark.asyncio
async def test_unlinked_enrollments_are_skipped(session, github_transport):
    user = await create_user(session)
    await create_enrollment(session, user, None)
    async with _client(github_transport) as client:
        summary = await poll_all(session, client)
    assert summary["total_repos"] == 0
    assert github_transport.calls == []


@pytest.mark.asyncio
async def test_client_error_mapping(github_routes, github_transport):
    github_routes["o/r"] = (429, {"message": "x"}, None)
    async with _client(github_transport) as client:
        with pytest.raises(RepoNotFound):
            await client.list_recent_commits("o", "missing", per_page=5)
        with pytest.raises(RateLimited):
            await client.list_recent_commits("o", "r", per_page=5)
        github_routes["o/r"] = (200, httpx.ConnectTimeout("nope"), None)
        with pytest.raises(UpstreamTimeout):
            await client.list_recent_commits("o", "r", per_page=5)


@pytest.mark.asyncio
async def test_store_failure_becomes_error_entry(session, github_routes, github_transport, monkeypatch):
    await create_milestone(session, "#M1", order=1)
    m2 = await create_milestone(session, "#M2", order=2)
    m2_id = m2.id
    ids = [(await _enroll(session, i)).id for i in range(3)]
    broken_id = ids[1]
    for i in range(3):
        github_routes[f"team{i}/app"] = (200, [commit_item(f"{i:040d}", "#M1 #M2")], None)

    real = commit_processor.record_activity

    async def fail_second_insert(session, **kw):
        if kw["enrollment_id"] == broken_id and kw["milestone_id"] == m2_id:
            raise OperationalError("INSERT", {}, Exception("disk full"))
        return await real(session, **kw)

    monkeypatch.setattr(commit_processor, "record_activity", fail_second_insert)
    async with _client(github_transport) as client:
        summary = await poll_all(session, client)

    [err] = summary["errors"]
    assert err["kind"] == "persistence"
    assert err["retryable"] is True
    assert err["enrollment_id"] == str(broken_id)
    assert sorted(r["enrollment_id"] for r in summary["results"]) == sorted(str(i) for i in ids if i != broken_id)
    assert all(r["new_activities"] == 2 for r in summary["results"])

    counts = {}
    for eid in ids:
        counts[eid] = await session.scalar(select(func.count()).select_from(Activity).where(Activity.enrollment_id == eid))
    # the #M1 insert committed before the failure is kept
    assert counts == {ids[0]: 2, broken_id: 1, ids[2]: 2}


@pytest.mark.asyncio
@pytest.mark.parametrize("headers,kind", [
    (None, "upstream"),
    ({"retry-after": "60"}, "rate_limited"),
])
async def test_forbidden_without_rate_limit_headers(session, github_routes, github_transport, headers, kind):
    await _enroll(session, 1)
    github_routes["team1/app"] = (403, {"message": "Repository access blocked"}, headers)
    async with _client(github_transport) as client:
        summary = await poll_all(session, client)
    assert [e["kind"] for e in summary["errors"]] == [kind]
