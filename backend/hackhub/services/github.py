from __future__ import annotations
import hashlib
import hmac
import re

import httpx

from hackhub.config import settings

# ---------- errors ----------

class GitHubError(Exception):
    """Base for per-repository failures; `kind` tags the entry in poll summaries."""
    kind = "upstream"
    retryable = True


class MalformedRepoUrl(GitHubError):
    kind = "malformed_input"
    retryable = False


class RepoNotFound(GitHubError):
    kind = "not_found"


class RateLimited(GitHubError):
    kind = "rate_limited"


class UpstreamTimeout(GitHubError):
    kind = "timeout"


class UpstreamError(GitHubError):
    kind = "upstream"


# ---------- repository URLs ----------

def _repo_url_re(host: str) -> re.Pattern[str]:
    return re.compile(
        rf"^https?://(?:www\.)?{re.escape(host)}/(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+?)(?:\.git)?/?$",
        re.IGNORECASE,
    )


def normalize_repo_url(url: str | None) -> str | None:
    """
    Canonical form stored on enrollments and used to match webhook payloads:
    trimmed, no trailing slash, no `.git` suffix. Empty input means "unlinked".
    """
    if url is None:
        return None
    url = url.strip()
    if not url:
        return None
    url = url.rstrip("/")
    if url.lower().endswith(".git"):
        url = url[:-4]
    return url


def parse_repo_url(url: str, host: str | None = None) -> tuple[str, str]:
    """
    `https://<host>/<owner>/<repo>[.git]` -> (owner, repo).

        >>> parse_repo_url("https://github.com/octo/hello.git")
        ('octo', 'hello')
    """
    m = _repo_url_re(host or settings.github_host).match((url or "").strip())
    if not m:
        raise MalformedRepoUrl(f"Invalid GitHub URL format: {url}")
    return m.group("owner"), m.group("repo")


# ---------- webhook signatures ----------

def sign_payload(body: bytes, secret: str) -> str:
    return "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: str | None, secret: str | None) -> bool:
    """
    Opt-in signing: without a configured secret every payload is accepted.
    With a secret, the `X-Hub-Signature-256` header must be present and match.
    """
    if not secret:
        return True
    if not signature:
        return False
    return hmac.compare_digest(sign_payload(body, secret), signature.strip())


# ---------- REST client ----------

class GitHubClient:
    """Thin async wrapper over the commits listing endpoint, one request at a time."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": f"{settings.app_name}/{settings.app_version}",
        }
        token = settings.github_token if token is None else token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.github_api_url,
            headers=headers,
            timeout=httpx.Timeout(timeout or settings.github_timeout_seconds, connect=5.0),
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_recent_commits(self, owner: str, repo: str, per_page: int) -> list[dict]:
        """Newest-first commits of the default branch, at most `per_page` of them."""
        try:
            r = await self._client.get(f"/repos/{owner}/{repo}/commits", params={"per_page": per_page})
        except httpx.TimeoutException as e:
            raise UpstreamTimeout(f"GitHub API timed out for {owner}/{repo}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"GitHub API request failed for {owner}/{repo}: {e}") from e

        if r.status_code == 404:
            raise RepoNotFound("Repository not found or is private (the student can configure a webhook instead)")
        if r.status_code == 429 or (r.status_code == 403 and _is_rate_limited(r)):
            raise RateLimited("GitHub API rate limit exceeded - will retry on next poll")
        if r.status_code >= 400:
            raise UpstreamError(f"GitHub API error: {r.status_code} {r.reason_phrase}")

        data = r.json()
        if not isinstance(data, list):
            raise UpstreamError("Unexpected GitHub API response shape")
        return data


def _is_rate_limited(r: httpx.Response) -> bool:
    if r.headers.get("x-ratelimit-remaining") == "0":
        return True
    try:
        body = r.json()
    except ValueError:
        body = None
    message = str(body.get("message", "")) if isinstance(body, dict) else r.text
    return "retry-after" in r.headers or "rate limit" in message.lower()
