import os
import tempfile
import uuid

# Must be set before hackhub.config is imported
_DB_PATH = os.path.join(tempfile.mkdtemp(prefix="hackhub-tests-"), "test.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["GITHUB_WEBHOOK_SECRET"] = ""
os.environ["GITHUB_TOKEN"] = ""

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event

from hackhub.db import Base, SessionLocal, engine
import hackhub.models.user  # noqa: F401  register tables
import hackhub.models.milestone  # noqa: F401
import hackhub.models.enrollment  # noqa: F401
import hackhub.models.vote  # noqa: F401
import hackhub.models.config_entry  # noqa: F401
from hackhub.main import app
from hackhub.models.enrollment import Enrollment
from hackhub.models.milestone import Milestone
from hackhub.models.user import User, ROLE_ADMIN, ROLE_STUDENT
from hackhub.security import make_access_token


@event.listens_for(engine.sync_engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


@pytest_asyncio.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def session(db):
    async with SessionLocal() as s:
        yield s


@pytest_asyncio.fixture
async def client(db):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def create_user(session, *, email=None, name=None, role=ROLE_STUDENT) -> User:
    user = User(email=email or f"user-{uuid.uuid4().hex[:8]}@example.com", name=name, role=role)
    session.add(user)
    await session.commit()
    return user


async def create_enrollment(session, user: User, repo_url: str | None = None, candidate: bool = False) -> Enrollment:
    e = Enrollment(user_id=user.id, repo_url=repo_url, is_voting_candidate=candidate)
    session.add(e)
    await session.commit()
    return e


async def create_milestone(session, pattern: str, points: int = 1, order: int = 0, title: str | None = None) -> Milestone:
    m = Milestone(title=title or pattern, label_pattern=pattern, points=points, order=order)
    session.add(m)
    await session.commit()
    return m


def auth_headers(user: User, role: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(str(user.id), role or user.role)}"}


@pytest_asyncio.fixture
async def admin(session):
    return await create_user(session, email="admin@example.com", name="Admin", role=ROLE_ADMIN)


@pytest_asyncio.fixture
async def student(session):
    return await create_user(session, email="student@example.com", name="Student")


def commit_item(sha: str, message: str, date: str = "2026-10-01T10:00:00Z") -> dict:
    """One entry of GET /repos/{owner}/{repo}/commits."""
    return {
        "sha": sha,
        "commit": {
            "message": message,
            "author": {"name": "dev", "date": date},
            "committer": {"name": "dev", "date": date},
        },
    }


@pytest.fixture
def github_routes():
    """Map of "owner/repo" -> (status, json body, headers) served by the mock GitHub API."""
    return {}


@pytest.fixture
def github_transport(github_routes):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        parts = request.url.path.strip("/").split("/")
        key = f"{parts[1]}/{parts[2]}" if len(parts) >= 4 and parts[0] == "repos" else ""
        if key not in github_routes:
            return httpx.Response(404, json={"message": "Not Found"})
        status, body, headers = github_routes[key]
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status, json=body, headers=headers or {})

    transport = httpx.MockTransport(handler)
    transport.calls = calls
    return transport
