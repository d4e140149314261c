from datetime import datetime, timedelta, timezone

import pytest

from hackhub.models.config_entry import ConfigEntry, EVENT_DEADLINE, VOTING_OPEN
from hackhub.services.event_config import (
    get_event_deadline, get_value, is_voting_open, set_event_deadline, set_value, set_voting_open,
)


@pytest.mark.asyncio
async def test_voting_flag_defaults_closed(session):
    assert await get_value(session, VOTING_OPEN) is None
    assert await is_voting_open(session) is False


@pytest.mark.asyncio
async def test_voting_flag_roundtrip(session):
    await set_voting_open(session, True)
    await session.commit()
    assert await is_voting_open(session) is True
    await set_voting_open(session, False)
    await session.commit()
    assert await get_value(session, VOTING_OPEN) == "false"
    assert await is_voting_open(session) is False


@pytest.mark.asyncio
async def test_anything_but_true_is_closed(session):
    await set_value(session, VOTING_OPEN, "TRUE")
    await session.commit()
    assert await is_voting_open(session) is False


@pytest.mark.asyncio
async def test_deadline_set_and_clear(session):
    deadline = datetime(2026, 10, 20, 18, 0, tzinfo=timezone(timedelta(hours=2)))
    await set_event_deadline(session, deadline)
    await session.commit()
    assert await get_event_deadline(session) == datetime(2026, 10, 20, 16, 0, tzinfo=timezone.utc)

    await set_event_deadline(session, None)
    await session.commit()
    assert await get_event_deadline(session) is None


@pytest.mark.asyncio
async def test_garbage_deadline_reads_as_none(session):
    session.add(ConfigEntry(key=EVENT_DEADLINE, value="next friday"))
    await session.commit()
    assert await get_event_deadline(session) is None
