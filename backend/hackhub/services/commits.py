from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone as dt_tz
from typing import Any, Iterable


@dataclass(frozen=True)
class CommitData:
    """A commit as seen by the processor, whatever its source (webhook push or API poll)."""
    id: str
    message: str
    timestamp: datetime | str


def parse_timestamp(value: datetime | str) -> datetime:
    """ISO-8601 string or datetime -> aware UTC datetime. Naive values are taken as UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt_tz.utc)
    return value.astimezone(dt_tz.utc)


def known_commit_ids(commit_hashes: Iterable[str | None]) -> set[str]:
    return {h for h in commit_hashes if h}


def filter_unseen(commits: Iterable[CommitData], known: set[str]) -> list[CommitData]:
    """Drop commits already recorded for the enrollment; source order is kept."""
    return [c for c in commits if c.id not in known]


def from_push_commits(commits: Iterable[Any]) -> list[CommitData]:
    """Commits of a validated GitHub push event, in the order GitHub sent them."""
    return [CommitData(id=c.id, message=c.message or "", timestamp=c.timestamp) for c in commits]


def from_commit_listing(items: list[dict]) -> list[CommitData]:
    """Commits of a `GET /repos/{owner}/{repo}/commits` response, in API order."""
    return [
        CommitData(
            id=item["sha"],
            message=(item.get("commit") or {}).get("message") or "",
            timestamp=_listing_date(item.get("commit") or {}),
        )
        for item in items
    ]


def _listing_date(commit: dict) -> str:
    # author date is what the student wrote; committer date covers rebased commits without an author block
    author = commit.get("author") or {}
    committer = commit.get("committer") or {}
    return author.get("date") or committer.get("date")
