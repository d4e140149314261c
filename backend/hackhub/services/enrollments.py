from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.models.enrollment import Enrollment
from hackhub.services.github import normalize_repo_url, parse_repo_url

log = structlog.get_logger()


def clean_repo_url(url: str | None) -> str | None:
    """Normalised repository URL, or None to unlink. Raises MalformedRepoUrl."""
    url = normalize_repo_url(url)
    if url is not None:
        parse_repo_url(url)
    return url


async def get_enrollment(session: AsyncSession, user_id: UUID) -> Enrollment | None:
    return await session.scalar(select(Enrollment).where(Enrollment.user_id == user_id))


async def link_repo(session: AsyncSession, user_id: UUID, repo_url: str | None) -> Enrollment:
    """Create or update the user's single enrollment. Caller commits."""
    repo_url = clean_repo_url(repo_url)
    enrollment = await get_enrollment(session, user_id)
    if enrollment:
        enrollment.repo_url = repo_url
    else:
        enrollment = Enrollment(user_id=user_id, repo_url=repo_url)
        session.add(enrollment)
    await session.flush()
    log.info("enrollment_linked", user_id=str(user_id), repo=repo_url)
    return enrollment
