"""
Pytest configuration and shared fixtures.
"""

import pytest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from config import settings
from taskbot.bot.base_handler import IncomingEvent
from taskbot.bot.session_manager import ConversationStore, MemoryBackend
from taskbot.models import TaskStatus, TaskView, UserView, WorkspaceView

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


@pytest.fixture
def now():
    """Fixed naive local 'now': Saturday 17 October 2026, 10:00."""
    return datetime(2026, 10, 17, 10, 0, 0)


@pytest.fixture
def make_task(now):
    """Factory for TaskView objects relative to `now`."""
    def _make(**overrides):
        data = {
            "id": "task-1",
            "title": "Протереть витрину",
            "description": "Стеллаж 3",
            "status": TaskStatus.ASSIGNED,
            "deadline": now + timedelta(hours=8),
            "created_at": now - timedelta(hours=2),
            "workspace_id": "ws-1",
            "assignee_id": "user-2",
            "assignee_username": "bob",
            "assignee_telegram_id": 222,
            "creator_username": "alice",
        }
        data.update(overrides)
        return TaskView(**data)
    return _make


@pytest.fixture
def sample_workspace():
    """Workspace with a valid invite code."""
    return WorkspaceView(id="ws-1", name="Кофейня", invite_code="ABC234", member_count=3)


@pytest.fixture
def admin_user():
    return UserView(id="user-1", telegram_id=111, username="alice", first_name="Alice", workspace_id="ws-1")


@pytest.fixture
def member_user():
    return UserView(id="user-2", telegram_id=222, username="bob", first_name="Bob", workspace_id="ws-1")


@pytest.fixture
def conversations():
    """In-memory conversation store without expiry."""
    return ConversationStore(MemoryBackend())


@pytest.fixture
def mock_transport():
    """Chat transport recording every outbound call."""
    transport = MagicMock()
    transport.send_message = AsyncMock(return_value=None)
    transport.edit_message = AsyncMock(return_value=None)
    transport.answer_callback = AsyncMock(return_value=None)
    transport.get_file_link = AsyncMock(return_value="photos/file_1.jpg")
    return transport


@pytest.fixture
def bot_settings():
    """Admin is Telegram user 111; bot is @task_bot."""
    with patch.object(settings, "admin_telegram_id", "111"), \
         patch.object(settings, "bot_username", "task_bot"):
        yield settings


@pytest.fixture
def fixed_now(now):
    """Freeze the resolver's clock at `now`."""
    with patch("taskbot.utils.date_parser.get_local_now", return_value=now), \
         patch("taskbot.utils.formatters.get_local_now", return_value=now):
        yield now


@pytest.fixture
def mock_repositories():
    """All six repositories as AsyncMocks."""
    return {
        "user_repo": AsyncMock(),
        "workspace_repo": AsyncMock(),
        "role_repo": AsyncMock(),
        "task_repo": AsyncMock(),
        "issue_repo": AsyncMock(),
        "template_repo": AsyncMock(),
    }


@pytest.fixture
def make_event():
    """Factory for IncomingEvent: text by default, a button when `data` is given."""
    def _make(text="", data=None, user_id=111, username="alice", photo=None):
        event = IncomingEvent(
            user_id=user_id,
            chat_id=user_id,
            username=username,
            first_name=username.title() if username else None,
            text=text,
            message_id=500,
            photo_file_id=photo,
        )
        if data is not None:
            event.callback_id = "cb-1"
            event.callback_data = data
        return event
    return _make


@pytest.fixture
def attach_repositories(mock_repositories):
    """Replace the repositories of a handler with the mocks."""
    def _attach(handler):
        for name, repo in mock_repositories.items():
            setattr(handler, name, repo)
        return handler
    return _attach
