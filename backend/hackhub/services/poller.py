from __future__ import annotations
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hackhub.config import settings
from hackhub.models.enrollment import Enrollment, Activity
from hackhub.services.commit_processor import PersistenceFailure, process_commits
from hackhub.services.commits import filter_unseen, from_commit_listing, known_commit_ids
from hackhub.services.github import GitHubClient, GitHubError, parse_repo_url

log = structlog.get_logger()


@dataclass(frozen=True)
class PollTarget:
    # Plain values: a rollback after a failed insert expires ORM instances mid-loop
    enrollment_id: UUID
    repo_url: str
    student: str


async def poll_target(session: AsyncSession, client: GitHubClient, t: PollTarget, window: int) -> dict[str, Any]:
    """Fetch, dedup and process the latest `window` commits of one enrollment's repository."""
    owner, repo = parse_repo_url(t.repo_url)
    known = known_commit_ids(
        (await session.execute(
            select(Activity.commit_hash).where(Activity.enrollment_id == t.enrollment_id)
        )).scalars().all()
    )
    items = await client.list_recent_commits(owner, repo, per_page=window)
    fresh = filter_unseen(from_commit_listing(items), known)
    result = await process_commits(session, t.enrollment_id, t.repo_url, fresh)
    return {
        "enrollment_id": str(t.enrollment_id),
        "student": t.student,
        "repo": t.repo_url,
        "commits_fetched": len(items),
        "commits_processed": result.processed,
        "new_activities": result.new_activities,
    }


async def poll_all(session: AsyncSession, client: GitHubClient | None = None, *, window: int | None = None) -> dict[str, Any]:
    """
    Poll every linked repository, one at a time.

    Only the `window` most recent commits (POLL_COMMIT_WINDOW, default 30) are inspected per
    repository per call; older unseen commits are never revisited. Failures are collected per
    repository and never stop the loop, so the summary is always partial-success.
    """
    window = window or settings.poll_commit_window
    enrollments = (await session.execute(
        select(Enrollment)
        .options(selectinload(Enrollment.user))
        .where(Enrollment.repo_url.is_not(None))
        .order_by(Enrollment.created_at.asc())
    )).scalars().all()
    targets = [PollTarget(e.id, e.repo_url, e.user.name or e.user.email) for e in enrollments]

    owns_client = client is None
    client = client or GitHubClient()
    results: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []
    try:
        for t in targets:
            try:
                results.append(await poll_target(session, client, t, window))
            except GitHubError as err:
                log.warning("poll_repo_failed", enrollment_id=str(t.enrollment_id), repo=t.repo_url, kind=err.kind, error=str(err))
                errors.append(_error_entry(t, err.kind, str(err), err.retryable))
            except PersistenceFailure as err:
                log.error("poll_repo_persistence_failed", enrollment_id=str(t.enrollment_id), repo=t.repo_url, created=err.created)
                errors.append(_error_entry(t, "persistence", str(err), True))
            except ValueError as err:
                # unparseable commit timestamps and similar payload problems
                log.warning("poll_repo_bad_payload", enrollment_id=str(t.enrollment_id), repo=t.repo_url, error=str(err))
                errors.append(_error_entry(t, "malformed_input", str(err), False))
            except Exception as err:
                log.exception("poll_repo_unexpected_error", enrollment_id=str(t.enrollment_id), repo=t.repo_url)
                await session.rollback()
                errors.append(_error_entry(t, "upstream", str(err) or err.__class__.__name__, True))
    finally:
        if owns_client:
            await client.aclose()

    found = sum(r["new_activities"] for r in results)
    log.info("poll_complete", total_repos=len(targets), ok=len(results), failed=len(errors), new_activities=found)
    return {
        "total_repos": len(targets),
        "results": results,
        "errors": errors,
        "message": f"Polled {len(targets)} repositories. Found {found} new milestone completions.",
    }


def _error_entry(t: PollTarget, kind: str, error: str, retryable: bool) -> dict[str, Any]:
    return {
        "enrollment_id": str(t.enrollment_id),
        "repo": t.repo_url,
        "kind": kind,
        "error": error,
        "retryable": retryable,
    }
