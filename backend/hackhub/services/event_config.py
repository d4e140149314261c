from __future__ import annotations
from datetime import datetime
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.models.config_entry import ConfigEntry, VOTING_OPEN, EVENT_DEADLINE
from hackhub.services.commits import parse_timestamp

# Every accessor reads the store; request handlers never share an in-memory copy.

async def get_value(session: AsyncSession, key: str) -> str | None:
    row = await session.get(ConfigEntry, key, populate_existing=True)
    return row.value if row else None


async def set_value(session: AsyncSession, key: str, value: str) -> None:
    """Upsert by key. Caller commits."""
    row = await session.get(ConfigEntry, key, populate_existing=True)
    if row:
        row.value = value
    else:
        session.add(ConfigEntry(key=key, value=value))
    await session.flush()


async def clear_value(session: AsyncSession, key: str) -> None:
    await session.execute(delete(ConfigEntry).where(ConfigEntry.key == key))


async def is_voting_open(session: AsyncSession) -> bool:
    return (await get_value(session, VOTING_OPEN)) == "true"


async def set_voting_open(session: AsyncSession, is_open: bool) -> None:
    await set_value(session, VOTING_OPEN, "true" if is_open else "false")


async def get_event_deadline(session: AsyncSession) -> datetime | None:
    raw = await get_value(session, EVENT_DEADLINE)
    if not raw:
        return None
    try:
        return parse_timestamp(raw)
    except ValueError:
        # Only ever written through set_event_deadline, so this means a hand-edited row
        return None


async def set_event_deadline(session: AsyncSession, deadline: datetime | None) -> None:
    if deadline is None:
        await clear_value(session, EVENT_DEADLINE)
        return
    await set_value(session, EVENT_DEADLINE, parse_timestamp(deadline).isoformat())
