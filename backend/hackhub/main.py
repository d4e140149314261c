from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from hackhub.config import settings
from hackhub.logging_setup import configure_logging
from hackhub.routes.system import router as system_router
from hackhub.routes.auth import router as auth_router
from hackhub.routes.enroll import router as enroll_router
from hackhub.routes.profile import router as profile_router
from hackhub.routes.milestones import router as milestones_router
from hackhub.routes.leaderboard import router as leaderboard_router
from hackhub.routes.vote import router as vote_router
from hackhub.routes.webhooks import router as webhooks_router
from hackhub.routes.admin import router as admin_router
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha,
             poll_commit_window=settings.poll_commit_window, webhook_secret=bool(settings.github_webhook_secret))
    yield
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API: commit-driven milestone tracking and leaderboard",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(auth_router)
app.include_router(enroll_router)
app.include_router(profile_router)
app.include_router(milestones_router)
app.include_router(leaderboard_router)
app.include_router(vote_router)
app.include_router(webhooks_router)
app.include_router(admin_router)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response
