from __future__ import annotations
import asyncio
import structlog
from hackhub.db import SessionLocal
from hackhub.logging_setup import configure_logging
from hackhub.services.poller import poll_all

log = structlog.get_logger()

async def _run() -> dict:
    async with SessionLocal() as session:
        return await poll_all(session)

def poll_repositories() -> dict:
    # RQ entry point (sync); run the async coroutine
    configure_logging()
    summary = asyncio.run(_run())
    log.info("poll_job_done", total_repos=summary["total_repos"], failed=len(summary["errors"]))
    return summary
