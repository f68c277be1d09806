"""
CommandHandler - slash commands and main-menu buttons available to everyone.

/start (with optional invite_<CODE> payload), /help, /profile,
/create_workspace, /test_onboarding and the member menu entries.
"""
from ...utils.formatters import format_profile, format_task_list
from ..base_handler import BaseHandler, IncomingEvent, INVALID_INVITE
from ..dialogs import (
    CreateWorkspaceDialog,
    IssueReportDialog,
    JoinWorkspaceDialog,
    OnboardingDialog,
)
from ..dialogs.onboarding import HELP_TEXT
from ..keyboards import (
    MENU_JOIN,
    MENU_MY_TASKS,
    MENU_PROFILE,
    MENU_REPORT_ISSUE,
    join_keyboard,
    task_list_keyboard,
)

ADMIN_HELP = (
    "\n\nАдминистратор: /admin, /workspace, /issues, /templates, "
    "/create_workspace"
)
INVITE_PREFIX = "invite_"


class CommandHandler(BaseHandler):
    """Handles member commands and menu entries."""

    def __init__(self, transport, conversations):
        super().__init__(transport, conversations)
        self.routes = {
            "/start": self.handle_start,
            "/help": self.handle_help,
            "/profile": self.handle_profile,
            "/create_workspace": self.handle_create_workspace,
            "/test_onboarding": self.handle_onboarding,
            MENU_MY_TASKS: self.handle_my_tasks,
            MENU_JOIN: self.handle_join,
            MENU_REPORT_ISSUE: self.handle_report_issue,
            MENU_PROFILE: self.handle_profile,
        }

    def _route_key(self, event: IncomingEvent):
        if event.is_callback:
            return None
        return event.command or event.text.strip()

    async def can_handle(self, event: IncomingEvent) -> bool:
        return self._route_key(event) in self.routes

    async def handle(self, event: IncomingEvent) -> bool:
        route = self.routes.get(self._route_key(event))
        if route is None:
            return False
        await route(event)
        return True

    # ==================== COMMANDS ====================

    async def handle_start(self, event: IncomingEvent):
        known = await self.user_repo.get_by_telegram_id(event.user_id)
        user = await self.current_user(event)

        payload = event.command_args.strip()
        if payload.startswith(INVITE_PREFIX):
            code = payload[len(INVITE_PREFIX):].upper()
            workspace = await self.workspace_repo.get_by_invite_code(code)
            if workspace is None:
                await self.reply(event, INVALID_INVITE)
                return
            await self.reply(
                event,
                f"🏢 Вас пригласили в рабочее пространство «{workspace.name}».",
                join_keyboard(workspace.invite_code),
            )
            return

        if known is None:
            self.logger.info(f"New user {event.user_id}, starting onboarding")
            await self.handle_onboarding(event)
            return

        await self.reply_with_menu(event, f"👋 С возвращением, {user.display_name}!")

    async def handle_onboarding(self, event: IncomingEvent):
        user = await self.current_user(event)
        workspace = None
        if user.workspace_id:
            workspace = await self.workspace_repo.get_by_id(user.workspace_id)

        transition = OnboardingDialog().start(
            str(event.user_id),
            name=user.display_name,
            workspace=workspace.name if workspace else "",
        )
        await self.start_dialog(event, transition)

    async def handle_help(self, event: IncomingEvent):
        text = HELP_TEXT + (ADMIN_HELP if self.is_admin(event) else "")
        await self.reply_with_menu(event, text)

    async def handle_profile(self, event: IncomingEvent):
        user = await self.current_user(event)
        workspace = None
        if user.workspace_id:
            workspace = await self.workspace_repo.get_by_id(user.workspace_id)
        await self.reply(
            event,
            format_profile(user, workspace.name if workspace else None, self.is_admin(event)),
        )

    async def handle_create_workspace(self, event: IncomingEvent):
        await self.start_dialog(event, CreateWorkspaceDialog().start(str(event.user_id)))

    # ==================== MENU ====================

    async def handle_my_tasks(self, event: IncomingEvent):
        user = await self.current_user(event)
        tasks = await self.task_repo.list_for_assignee(user.id)
        await self.reply(event, format_task_list(tasks, mobile=self.is_compact(event)), task_list_keyboard(tasks))

    async def handle_join(self, event: IncomingEvent):
        await self.start_dialog(event, JoinWorkspaceDialog().start(str(event.user_id)))

    async def handle_report_issue(self, event: IncomingEvent):
        await self.start_dialog(event, IssueReportDialog().start(str(event.user_id)))
