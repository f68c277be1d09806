"""
Unit tests for TaskHandler (inline task buttons).
"""

import pytest
from unittest.mock import AsyncMock

from taskbot.bot.base_handler import NOT_ALLOWED
from taskbot.bot.handlers import TaskHandler
from taskbot.bot.handlers.task_handler import TASK_NOT_FOUND
from taskbot.models import DialogAction, TaskStatus


@pytest.fixture
def handler(mock_transport, conversations, attach_repositories, bot_settings, fixed_now):
    return attach_repositories(TaskHandler(mock_transport, conversations))


@pytest.fixture
def bob(make_event):
    """Button press by the assignee."""
    def _press(data):
        return make_event(data=data, user_id=222, username="bob")
    return _press


class TestCanHandle:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", ["task:view:task-1", "ws:join:ABC234", "noop"])
    async def test_accepted(self, handler, make_event, data):
        assert await handler.can_handle(make_event(data=data)) is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", ["ws:info", "deadline:today", "issue:cat:Другое"])
    async def test_rejected(self, handler, make_event, data):
        assert await handler.can_handle(make_event(data=data)) is False

    @pytest.mark.asyncio
    async def test_text_not_handled(self, handler, make_event):
        assert await handler.can_handle(make_event("task:view:task-1")) is False


class TestLookup:

    @pytest.mark.asyncio
    async def test_missing_task(self, handler, make_event, mock_transport):
        handler.task_repo.get = AsyncMock(return_value=None)
        assert await handler.handle(make_event(data="task:view:nope")) is True
        mock_transport.answer_callback.assert_awaited_once_with("cb-1", TASK_NOT_FOUND, show_alert=True)

    @pytest.mark.asyncio
    async def test_view_shows_details(self, handler, make_event, make_task, mock_transport):
        handler.task_repo.get = AsyncMock(return_value=make_task())
        await handler.handle(make_event(data="task:details:task-1"))

        text = mock_transport.send_message.call_args.args[1]
        assert "Протереть витрину" in text

    @pytest.mark.asyncio
    async def test_noop_only_acknowledges(self, handler, make_event, mock_transport):
        await handler.handle(make_event(data="noop"))
        mock_transport.answer_callback.assert_awaited_once()
        mock_transport.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_join_button(self, handler, make_event, sample_workspace, admin_user):
        handler.workspace_repo.get_by_invite_code = AsyncMock(return_value=sample_workspace)
        handler.user_repo.upsert_by_telegram = AsyncMock(return_value=admin_user)

        await handler.handle(make_event(data="ws:join:ABC234"))

        handler.workspace_repo.get_by_invite_code.assert_awaited_once_with("ABC234")
        handler.user_repo.set_workspace.assert_awaited_once_with("user-1", "ws-1")


class TestComplete:

    @pytest.mark.asyncio
    async def test_assignee_sends_for_review(self, handler, bob, make_task, mock_transport):
        task = make_task()
        handler.task_repo.get = AsyncMock(return_value=task)
        handler.task_repo.set_status = AsyncMock(return_value=make_task(status=TaskStatus.PENDING_REVIEW))

        await handler.handle(bob("task:complete:task-1"))

        handler.task_repo.set_status.assert_awaited_once_with("task-1", TaskStatus.PENDING_REVIEW)
        admin_call = mock_transport.send_message.call_args_list[-1]
        assert admin_call.args[0] == 111
        assert admin_call.args[2].inline_keyboard[0][0].callback_data == "task:approve:task-1"

    @pytest.mark.asyncio
    async def test_other_user_refused(self, handler, make_event, make_task, mock_transport):
        handler.task_repo.get = AsyncMock(return_value=make_task())

        await handler.handle(make_event(data="task:complete:task-1", user_id=333, username="eve"))

        handler.task_repo.set_status.assert_not_awaited()
        mock_transport.answer_callback.assert_awaited_once_with("cb-1", NOT_ALLOWED, show_alert=True)

    @pytest.mark.asyncio
    async def test_closed_task_untouched(self, handler, bob, make_task):
        handler.task_repo.get = AsyncMock(return_value=make_task(status=TaskStatus.APPROVED))
        await handler.handle(bob("task:complete:task-1"))
        handler.task_repo.set_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_assignee_resolved_by_user_id(self, handler, bob, make_task, member_user):
        handler.task_repo.get = AsyncMock(return_value=make_task(assignee_telegram_id=None))
        handler.user_repo.get_by_telegram_id = AsyncMock(return_value=member_user)
        handler.task_repo.set_status = AsyncMock(return_value=make_task(status=TaskStatus.PENDING_REVIEW))

        await handler.handle(bob("task:complete:task-1"))

        handler.task_repo.set_status.assert_awaited_once()


class TestIssue:

    @pytest.mark.asyncio
    async def test_issue_opens_report_for_task(self, handler, conversations, bob, make_task):
        handler.task_repo.get = AsyncMock(return_value=make_task(status=TaskStatus.IN_PROGRESS))

        await handler.handle(bob("task:issue:task-1"))

        handler.task_repo.set_status.assert_awaited_once_with("task-1", TaskStatus.PENDING_REVIEW)
        state = await conversations.get("222")
        assert state.action == DialogAction.REPORTING_ISSUE
        assert state.data["task_id"] == "task-1"


class TestReview:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action,status,notice", [
        ("approve", TaskStatus.APPROVED, "принята"),
        ("reject", TaskStatus.REJECTED, "отклонена"),
    ])
    async def test_admin_review(self, handler, make_event, make_task, mock_transport, action, status, notice):
        handler.task_repo.get = AsyncMock(return_value=make_task(status=TaskStatus.PENDING_REVIEW))
        handler.task_repo.set_status = AsyncMock(return_value=make_task(status=status))

        await handler.handle(make_event(data=f"task:{action}:task-1"))

        handler.task_repo.set_status.assert_awaited_once_with("task-1", status)
        assignee_call = mock_transport.send_message.call_args_list[-1]
        assert assignee_call.args[0] == 222
        assert notice in assignee_call.args[1]

    @pytest.mark.asyncio
    async def test_member_cannot_review(self, handler, bob, make_task):
        handler.task_repo.get = AsyncMock(return_value=make_task(status=TaskStatus.PENDING_REVIEW))
        await handler.handle(bob("task:approve:task-1"))
        handler.task_repo.set_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_notice_failure_is_tolerated(self, handler, make_event, make_task, mock_transport):
        handler.task_repo.get = AsyncMock(return_value=make_task(status=TaskStatus.PENDING_REVIEW))
        handler.task_repo.set_status = AsyncMock(return_value=make_task(status=TaskStatus.APPROVED))

        async def send(chat_id, text, keyboard=None):
            if chat_id == 222:
                raise RuntimeError("chat not found")

        mock_transport.send_message.side_effect = send
        assert await handler.handle(make_event(data="task:approve:task-1")) is True


class TestRemind:

    @pytest.mark.asyncio
    async def test_remind_moves_to_in_progress(self, handler, make_event, make_task, mock_transport):
        handler.task_repo.get = AsyncMock(return_value=make_task())

        await handler.handle(make_event(data="task:remind:task-1"))

        chat_id, text, _ = mock_transport.send_message.call_args.args
        assert chat_id == 222
        assert "@alice" in text
        handler.task_repo.set_status.assert_awaited_once_with("task-1", TaskStatus.IN_PROGRESS)
        mock_transport.answer_callback.assert_awaited_with("cb-1", "Напоминание отправлено", show_alert=False)

    @pytest.mark.asyncio
    async def test_remind_keeps_in_progress(self, handler, make_event, make_task):
        handler.task_repo.get = AsyncMock(return_value=make_task(status=TaskStatus.IN_PROGRESS))
        await handler.handle(make_event(data="task:remind:task-1"))
        handler.task_repo.set_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remind_compact_for_phone_assignee(self, handler, make_event, make_task, mock_transport):
        handler.task_repo.get = AsyncMock(return_value=make_task(assignee_username="android_bob"))

        await handler.handle(make_event(data="task:remind:task-1"))

        text = mock_transport.send_message.call_args.args[1]
        assert text.startswith("⏰ @alice напоминает:")
        assert len(text) <= 200
