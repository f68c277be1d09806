"""
Unit tests for DialogHandler.

Tests:
- Task creation end to end (commit arguments)
- Assignee resolution failures
- Workspace join: bad length, unknown code, success
- Events outside the dialog are passed on
- Commit failures clear state and apologize
- Best-effort secondary steps
"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock

from taskbot.bot.base_handler import GENERIC_FAILURE, INVALID_INVITE
from taskbot.bot.dialogs import IssueReportDialog, JoinWorkspaceDialog, OnboardingDialog, TaskCreationDialog
from taskbot.bot.dialogs.workspace import BAD_CODE_LENGTH
from taskbot.bot.handlers import DialogHandler
from taskbot.bot.handlers.dialog_handler import ASSIGNEE_NOT_FOUND
from taskbot.models import DialogAction, IssueView, TaskView
from taskbot.utils.date_parser import resolve_quick_code
from taskbot.utils.datetime_utils import parse_timestamp


@pytest.fixture
def handler(mock_transport, conversations, attach_repositories, bot_settings, fixed_now):
    return attach_repositories(DialogHandler(mock_transport, conversations))


def sent_texts(transport):
    return [c.args[1] for c in transport.send_message.call_args_list]


async def drive(handler, make_event, *messages):
    for message in messages:
        await handler.handle(make_event(message))


# ==================== TASK CREATION ====================

class TestTaskCreation:

    @pytest.fixture
    def users(self, handler, admin_user, member_user):
        async def by_telegram(telegram_id):
            return {111: admin_user, 222: member_user}.get(telegram_id)

        handler.user_repo.get_by_telegram_id = AsyncMock(side_effect=by_telegram)
        handler.user_repo.get_by_username = AsyncMock(return_value=member_user)
        return admin_user, member_user

    @pytest.fixture
    def created_task(self, handler, fixed_now):
        task = TaskView(
            id="task-9",
            title="Clean shelf",
            description="Shelf 3",
            deadline=datetime(2026, 10, 18, 18, 0),
            assignee_id="user-2",
            assignee_username="bob",
            assignee_telegram_id=222,
            creator_username="alice",
        )
        handler.task_repo.create = AsyncMock(return_value=task)
        return task

    @pytest.mark.asyncio
    async def test_full_scenario_commit_arguments(self, handler, conversations, make_event, users, created_task, mock_transport):
        """Clean shelf / Shelf 3 / @bob / Завтра 18:00."""
        await handler.conversations.set("111", TaskCreationDialog().start("111").state)

        await drive(handler, make_event, "Clean shelf", "Shelf 3", "@bob")
        assert (await conversations.get("111")).step == "deadline"

        assert await handler.handle(make_event(data="deadline:tomorrow:18:00")) is True

        expected_deadline = resolve_quick_code("deadline:tomorrow:18:00")
        assert parse_timestamp(expected_deadline) == datetime(2026, 10, 18, 18, 0)
        handler.task_repo.create.assert_awaited_once_with(
            "ws-1", "user-1", "user-2", "Clean shelf", "Shelf 3", expected_deadline,
        )
        handler.user_repo.get_by_username.assert_awaited_once_with("bob", workspace_id="ws-1")

        assert await conversations.get("111") is None
        texts = sent_texts(mock_transport)
        assert any(t.startswith("✅ Задача создана и назначена.") for t in texts)
        # Assignee notified in their own chat
        assert mock_transport.send_message.call_args_list[-1].args[0] == 222
        mock_transport.answer_callback.assert_awaited()

    @pytest.mark.asyncio
    async def test_numeric_assignee_looked_up_by_telegram_id(self, handler, make_event, users, created_task):
        await handler.conversations.set("111", TaskCreationDialog().start("111").state)
        await drive(handler, make_event, "Clean shelf", "Shelf 3", "222")
        await handler.handle(make_event(data="deadline:tomorrow:18:00"))

        handler.user_repo.get_by_username.assert_not_awaited()
        assert handler.task_repo.create.await_args.args[2] == "user-2"

    @pytest.mark.asyncio
    async def test_unknown_assignee_ends_dialog(self, handler, conversations, make_event, users, mock_transport):
        handler.user_repo.get_by_username = AsyncMock(return_value=None)
        await handler.conversations.set("111", TaskCreationDialog().start("111").state)
        await drive(handler, make_event, "Clean shelf", "Shelf 3", "@ghost")
        await handler.handle(make_event(data="deadline:tomorrow:18:00"))

        handler.task_repo.create.assert_not_awaited()
        assert await conversations.get("111") is None
        assert sent_texts(mock_transport)[-1] == ASSIGNEE_NOT_FOUND

    @pytest.mark.asyncio
    async def test_assignee_notice_failure_does_not_fail_commit(self, handler, make_event, users, created_task, mock_transport):
        async def send(chat_id, text, keyboard=None):
            if chat_id == 222:
                raise RuntimeError("bot was blocked by the user")

        mock_transport.send_message.side_effect = send
        await handler.conversations.set("111", TaskCreationDialog().start("111").state)
        await drive(handler, make_event, "Clean shelf", "Shelf 3", "@bob")
        await handler.handle(make_event(data="deadline:tomorrow:18:00"))

        handler.task_repo.create.assert_awaited_once()
        assert GENERIC_FAILURE not in sent_texts(mock_transport)

    @pytest.mark.asyncio
    async def test_store_failure_apologizes_and_clears(self, handler, conversations, make_event, users, mock_transport):
        handler.task_repo.create = AsyncMock(side_effect=RuntimeError("db down"))
        await handler.conversations.set("111", TaskCreationDialog().start("111").state)
        await drive(handler, make_event, "Clean shelf", "Shelf 3", "@bob")
        await handler.handle(make_event(data="deadline:tomorrow:18:00"))

        assert await conversations.get("111") is None
        assert sent_texts(mock_transport)[-1] == GENERIC_FAILURE

    @pytest.mark.asyncio
    async def test_past_deadline_keeps_step(self, handler, conversations, make_event, users):
        await handler.conversations.set("111", TaskCreationDialog().start("111").state)
        await drive(handler, make_event, "Clean shelf", "Shelf 3", "@bob", "сегодня в 08:00")

        assert (await conversations.get("111")).step == "deadline"
        handler.task_repo.create.assert_not_awaited()


# ==================== WORKSPACE JOIN ====================

class TestJoinWorkspace:

    @pytest.mark.asyncio
    async def test_bad_length_reprompts(self, handler, conversations, make_event, mock_transport):
        await conversations.set("111", JoinWorkspaceDialog().start("111").state)
        await handler.handle(make_event("ABC23"))

        state = await conversations.get("111")
        assert state.action == DialogAction.JOINING_WORKSPACE
        assert state.step == "code"
        assert sent_texts(mock_transport)[-1] == BAD_CODE_LENGTH
        handler.workspace_repo.get_by_invite_code.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_code_clears_state(self, handler, conversations, make_event, mock_transport):
        handler.workspace_repo.get_by_invite_code = AsyncMock(return_value=None)
        await conversations.set("111", JoinWorkspaceDialog().start("111").state)
        await handler.handle(make_event("zzz999"))

        handler.workspace_repo.get_by_invite_code.assert_awaited_once_with("ZZZ999")
        assert await conversations.get("111") is None
        assert sent_texts(mock_transport)[-1] == INVALID_INVITE
        handler.user_repo.set_workspace.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_code_binds_user(self, handler, conversations, make_event, sample_workspace, admin_user, mock_transport):
        handler.workspace_repo.get_by_invite_code = AsyncMock(return_value=sample_workspace)
        handler.user_repo.upsert_by_telegram = AsyncMock(return_value=admin_user)
        await conversations.set("111", JoinWorkspaceDialog().start("111").state)
        await handler.handle(make_event("abc234"))

        handler.user_repo.set_workspace.assert_awaited_once_with("user-1", "ws-1")
        assert await conversations.get("111") is None
        assert "Кофейня" in sent_texts(mock_transport)[-1]


# ==================== ROUTING CONTRACT ====================

class TestPassThrough:

    @pytest.mark.asyncio
    async def test_no_dialog(self, handler, make_event):
        assert await handler.handle(make_event("привет")) is False
        assert await handler.can_handle(make_event("привет")) is False

    @pytest.mark.asyncio
    async def test_command_leaves_state_untouched(self, handler, conversations, make_event, mock_transport):
        state = TaskCreationDialog().start("111").state
        await conversations.set("111", state)

        assert await handler.handle(make_event("/help")) is False
        assert (await conversations.get("111")).step == "title"
        mock_transport.send_message.assert_not_awaited()


# ==================== OTHER COMMITS ====================

class TestOtherCommits:

    @pytest.mark.asyncio
    async def test_workspace_created_even_if_role_fails(self, handler, conversations, make_event, admin_user, sample_workspace, mock_transport):
        from taskbot.bot.dialogs import CreateWorkspaceDialog

        handler.user_repo.upsert_by_telegram = AsyncMock(return_value=admin_user)
        handler.workspace_repo.create = AsyncMock(return_value=sample_workspace)
        handler.role_repo.get_by_names = AsyncMock(return_value=type("Role", (), {"id": 1})())
        handler.role_repo.assign = AsyncMock(side_effect=RuntimeError("constraint"))

        await conversations.set("111", CreateWorkspaceDialog().start("111").state)
        await handler.handle(make_event("Кофейня"))

        handler.workspace_repo.create.assert_awaited_once_with("Кофейня", created_by="user-1")
        handler.user_repo.set_workspace.assert_awaited_once_with("user-1", "ws-1")
        text = sent_texts(mock_transport)[-1]
        assert "ABC234" in text
        assert "https://t.me/task_bot?start=invite_ABC234" in text

    @pytest.mark.asyncio
    async def test_workspace_without_owner_role(self, handler, conversations, make_event, admin_user, sample_workspace):
        from taskbot.bot.dialogs import CreateWorkspaceDialog

        handler.user_repo.upsert_by_telegram = AsyncMock(return_value=admin_user)
        handler.workspace_repo.create = AsyncMock(return_value=sample_workspace)
        handler.role_repo.get_by_names = AsyncMock(return_value=None)

        await conversations.set("111", CreateWorkspaceDialog().start("111").state)
        await handler.handle(make_event("Кофейня"))

        handler.role_repo.assign.assert_not_awaited()
        assert await conversations.get("111") is None

    @pytest.mark.asyncio
    async def test_issue_with_photo_notifies_admin(self, handler, conversations, make_event, member_user, mock_transport):
        handler.user_repo.upsert_by_telegram = AsyncMock(return_value=member_user)
        handler.issue_repo.create = AsyncMock(return_value=IssueView(
            id="issue-123456", category="Оборудование", description="Сломалась кофемашина",
        ))

        await conversations.set("222", IssueReportDialog().start("222", task_id="task-1").state)
        await handler.handle(make_event(data="issue:cat:Оборудование", user_id=222, username="bob"))
        await handler.handle(make_event("Сломалась кофемашина", user_id=222, username="bob"))
        await handler.handle(make_event(photo="file-large", user_id=222, username="bob"))

        mock_transport.get_file_link.assert_awaited_once_with("file-large")
        handler.issue_repo.create.assert_awaited_once_with(
            "ws-1", "user-2", "Оборудование", "Сломалась кофемашина",
            photo_url="photos/file_1.jpg", task_id="task-1",
        )
        # Admin (111) got the issue card
        assert mock_transport.send_message.call_args_list[-1].args[0] == 111
        assert await conversations.get("222") is None

    @pytest.mark.asyncio
    async def test_name_edit_returns_to_profile(self, handler, conversations, make_event, mock_transport):
        onboarding = OnboardingDialog()
        state = onboarding.show_step(onboarding.start("111", name="@alice").state, 2).state
        editing = onboarding.step(state, make_event(data="onboarding:edit_name").to_dialog_event()).state
        await conversations.set("111", editing)

        await handler.handle(make_event("Алиса"))

        handler.user_repo.update_username.assert_awaited_once_with(111, "Алиса")
        stored = await conversations.get("111")
        assert stored.action == DialogAction.ONBOARDING
        assert stored.step == "2"
        assert "Алиса" in sent_texts(mock_transport)[-1]

    @pytest.mark.asyncio
    async def test_onboarding_complete_clears_state(self, handler, conversations, make_event, mock_transport):
        await conversations.set("111", OnboardingDialog().start("111").state)
        await handler.handle(make_event(data="onboarding:complete"))

        assert await conversations.get("111") is None
        mock_transport.send_message.assert_awaited()
