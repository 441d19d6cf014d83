import os

os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import app.models  # noqa: F401  registers every mapper before rows are built
from app.models.match import Match
from app.schemas.profile import ProfileSnapshot


@pytest.fixture
def mock_session():
    session = AsyncMock()

    # Setup execute result
    mock_result = MagicMock()
    # Ensure scalar_one_or_none returns a value, not a coroutine
    mock_result.scalar_one_or_none.return_value = None
    mock_result.scalars.return_value.all.return_value = []
    mock_result.first.return_value = None
    mock_result.all.return_value = []

    # Configure session.execute to return this result when awaited
    session.execute.side_effect = None
    session.execute.return_value = mock_result

    # Standard methods
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    # Used as ``async with session.begin_nested()``
    session.begin_nested = MagicMock()

    return session


@pytest.fixture
def now():
    return datetime(2026, 3, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_profile():
    def _make(profile_id, user_id=None, **kwargs):
        kwargs.setdefault("display_name", f"User {profile_id}")
        return ProfileSnapshot(id=profile_id, user_id=user_id or profile_id * 10, **kwargs)
    return _make


@pytest.fixture
def make_match():
    def _make(match_id=1, profile_a_id=1, profile_b_id=2, status="pending", a_liked=False, b_liked=False, matched_at=None):
        return Match(
            id=match_id,
            profile_a_id=profile_a_id,
            profile_b_id=profile_b_id,
            status=status,
            a_liked=a_liked,
            b_liked=b_liked,
            matched_at=matched_at,
            version=1,
        )
    return _make
