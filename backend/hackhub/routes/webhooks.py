from __future__ import annotations
import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.config import settings
from hackhub.db import get_session
from hackhub.models.enrollment import Enrollment
from hackhub.schemas.webhook import PushEvent
from hackhub.services.commit_processor import PersistenceFailure, process_commits
from hackhub.services.commits import from_push_commits
from hackhub.services.github import normalize_repo_url, verify_signature

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
log = structlog.get_logger()

@router.post("/github")
async def github_push(
    request: Request,
    session: AsyncSession = Depends(get_session),
    x_github_event: str | None = Header(default=None),
    x_hub_signature_256: str | None = Header(default=None),
):
    # Signature is computed over the exact bytes GitHub sent
    body = await request.body()
    if not verify_signature(body, x_hub_signature_256, settings.github_webhook_secret):
        log.warning("webhook_signature_rejected", github_event=x_github_event, signed=bool(x_hub_signature_256))
        raise HTTPException(status_code=401, detail="Invalid signature")

    if x_github_event == "ping":
        return {"ok": True, "message": "pong"}
    if x_github_event not in (None, "push"):
        return {"ok": True, "ignored": x_github_event, "processed": 0, "new_activities": 0}

    try:
        event = PushEvent.model_validate_json(body)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Invalid push payload")

    repo_url = normalize_repo_url(event.repository.html_url)
    enrollments = (await session.execute(select(Enrollment).where(Enrollment.repo_url == repo_url))).scalars().all()
    if not enrollments:
        log.info("webhook_unknown_repo", repo=repo_url)
        return {"processed": 0, "new_activities": 0, "message": "Repository not linked to any enrollment", "errors": []}

    commits = from_push_commits(event.commits)
    enrollment_ids = [e.id for e in enrollments]
    processed = created = 0
    errors: list[dict] = []
    # One enrollment failing never stops the others linked to the same repository
    for enrollment_id in enrollment_ids:
        try:
            result = await process_commits(session, enrollment_id, repo_url, commits)
        except PersistenceFailure as err:
            log.error("webhook_persistence_failed", enrollment_id=str(enrollment_id), created=err.created)
            created += err.created
            errors.append({"enrollment_id": str(enrollment_id), "kind": "persistence", "error": str(err)})
            continue
        except ValueError as err:
            await session.rollback()
            log.warning("webhook_bad_payload", enrollment_id=str(enrollment_id), error=str(err))
            errors.append({"enrollment_id": str(enrollment_id), "kind": "malformed_input", "error": str(err)})
            continue
        processed += result.processed
        created += result.new_activities

    log.info("webhook_processed", repo=repo_url, commits=len(commits), new_activities=created, failed=len(errors))
    return {"processed": processed, "new_activities": created, "errors": errors}
