from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "hackhub-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "Hackathon Hub")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/hackhub_dev")
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")
    # Used to build the webhook URL shown to admins
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

    # GitHub
    github_api_url: str = os.getenv("GITHUB_API_URL", "https://api.github.com")
    github_host: str = os.getenv("GITHUB_HOST", "github.com")
    github_token: str = os.getenv("GITHUB_TOKEN", "")  # optional, raises the API rate limit
    github_webhook_secret: str = os.getenv("GITHUB_WEBHOOK_SECRET", "")
    github_timeout_seconds: float = float(os.getenv("GITHUB_TIMEOUT_SECONDS", "10"))

    # Number of most recent commits inspected per repository per poll (GitHub caps per_page at 100)
    poll_commit_window: int = min(100, int(os.getenv("POLL_COMMIT_WINDOW", "30")))

settings = Settings()
