"""
Unit tests for UserRepository.upsert_by_telegram.
"""

import pytest
from unittest.mock import AsyncMock, Mock, MagicMock

from taskbot.database.exceptions import DatabaseOperationError
from taskbot.database.models import UserDB
from taskbot.database.repositories.users import UserRepository


@pytest.fixture
def mock_database():
    """Mock database with session context manager."""
    db = Mock()
    session = AsyncMock()

    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)

    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = Mock(side_effect=lambda obj: setattr(obj, "id", "user-2"))

    db.session = Mock(return_value=session)
    return db, session


@pytest.fixture
def user_repository(mock_database):
    db, session = mock_database
    repo = UserRepository()
    repo.db = db
    return repo, session


def existing(row):
    result = MagicMock()
    result.scalar_one_or_none.return_value = row
    return result


@pytest.mark.asyncio
async def test_first_contact_registers_user(user_repository):
    repo, session = user_repository
    session.execute.return_value = existing(None)

    user = await repo.upsert_by_telegram(222, "bob", "Bob")

    added = session.add.call_args.args[0]
    assert added.telegram_id == 222
    assert user.username == "bob"
    assert user.first_name == "Bob"


@pytest.mark.asyncio
async def test_chosen_name_survives_next_event(user_repository):
    """A name set during onboarding is not replaced by the Telegram handle."""
    repo, session = user_repository
    row = UserDB(id="user-2", telegram_id=222, username="Иван Петров", first_name="Bob")
    session.execute.return_value = existing(row)

    user = await repo.upsert_by_telegram(222, "bob", "Bob")

    assert row.username == "Иван Петров"
    assert user.username == "Иван Петров"
    session.add.assert_not_called()


@pytest.mark.asyncio
async def test_missing_username_filled_in(user_repository):
    repo, session = user_repository
    row = UserDB(id="user-2", telegram_id=222, username=None, first_name=None)
    session.execute.return_value = existing(row)

    user = await repo.upsert_by_telegram(222, "bob", "Bob")

    assert user.username == "bob"
    assert user.first_name == "Bob"


@pytest.mark.asyncio
async def test_failure_wrapped(user_repository):
    repo, session = user_repository
    session.execute.side_effect = RuntimeError("connection reset")

    with pytest.raises(DatabaseOperationError):
        await repo.upsert_by_telegram(222, "bob")
