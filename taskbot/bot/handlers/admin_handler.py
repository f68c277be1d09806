"""
AdminHandler - administrator commands, menu entries and panel buttons.

Covers the workspace panel, roles, issue triage, task templates and the
filtered/sorted task list. Everything here requires the configured admin.
"""
from typing import List

from config import settings
from ...models.task import IssueStatus, TaskStatus, TaskView
from ...utils.formatters import (
    compute_workspace_stats,
    format_issue,
    format_issue_list,
    format_mobile_stats,
    format_task_list,
    format_workspace_info,
    format_workspace_stats,
    invite_link,
)
from ..base_handler import BaseHandler, IncomingEvent, NO_WORKSPACE, NOT_ALLOWED
from ..dialogs import ChecklistDialog, TaskCreationDialog, TaskTemplateDialog
from ..keyboards import (
    MENU_ALL_TASKS,
    MENU_CHECKLIST,
    MENU_CREATE_TASK,
    MENU_ISSUES,
    MENU_STATS,
    MENU_TEMPLATES,
    admin_panel_keyboard,
    admin_task_list_keyboard,
    issue_status_keyboard,
    members_keyboard,
    templates_keyboard,
    workspace_panel_keyboard,
)

CALLBACK_PREFIXES = ("ws:", "role:", "issue:status:", "issues:", "template:", "tasks:")
MAX_ISSUE_CARDS = 10

STATUS_ORDER = {
    TaskStatus.IN_PROGRESS: 0,
    TaskStatus.ASSIGNED: 1,
    TaskStatus.PENDING_REVIEW: 2,
    TaskStatus.REJECTED: 3,
    TaskStatus.APPROVED: 4,
}
FILTER_TITLES = {
    "all": "Все задачи",
    "active": "Активные задачи",
    "overdue": "Просроченные задачи",
    "pending_review": "Задачи на проверке",
}


def sort_tasks(tasks: List[TaskView], key: str) -> List[TaskView]:
    """Order tasks for the admin list. Tasks without a deadline go last."""
    if key == "status":
        return sorted(tasks, key=lambda t: STATUS_ORDER.get(t.status, len(STATUS_ORDER)))
    if key == "assignee":
        return sorted(tasks, key=lambda t: (t.assignee_username or "").lower())
    return sorted(tasks, key=lambda t: (t.deadline is None, t.deadline or t.created_at))


class AdminHandler(BaseHandler):
    """Handles administrator actions."""

    def __init__(self, transport, conversations):
        super().__init__(transport, conversations)
        self.message_routes = {
            "/admin": self.handle_panel,
            "/workspace": self.handle_workspace,
            "/issues": self.handle_issues,
            "/templates": self.handle_templates,
            MENU_CREATE_TASK: self.handle_create_task,
            MENU_ALL_TASKS: self.handle_all_tasks,
            MENU_STATS: self.handle_stats,
            MENU_ISSUES: self.handle_issues,
            MENU_TEMPLATES: self.handle_templates,
            MENU_CHECKLIST: self.handle_checklist,
        }

    async def can_handle(self, event: IncomingEvent) -> bool:
        if event.is_callback:
            data = event.callback_data
            return data.startswith(CALLBACK_PREFIXES) and not data.startswith("ws:join:")
        return (event.command or event.text.strip()) in self.message_routes

    async def handle(self, event: IncomingEvent) -> bool:
        if not await self.can_handle(event):
            return False

        if not self.is_admin(event):
            # Plain messages from members are ignored silently
            self.logger.info(f"Admin action refused for {event.user_id}")
            await self.acknowledge(event, NOT_ALLOWED, alert=True)
            return True

        if event.is_callback:
            await self.handle_callback(event)
        else:
            await self.message_routes[event.command or event.text.strip()](event)
        return True

    async def _workspace_id(self, event: IncomingEvent):
        user = await self.current_user(event)
        if not user.workspace_id:
            await self.acknowledge(event)
            await self.reply(event, NO_WORKSPACE)
            return None
        return user.workspace_id

    # ==================== CALLBACKS ====================

    async def handle_callback(self, event: IncomingEvent):
        data = event.callback_data

        if data == "ws:info":
            await self.acknowledge(event)
            await self.handle_workspace(event)
        elif data == "ws:invite":
            await self.acknowledge(event)
            await self.handle_invite(event)
        elif data == "ws:stats":
            await self.acknowledge(event)
            await self.handle_stats(event)
        elif data == "ws:members":
            await self.acknowledge(event)
            await self.handle_members(event)
        elif data.startswith("role:set:"):
            await self.handle_role(event, data)
        elif data.startswith("issue:status:"):
            await self.handle_issue_status(event, data)
        elif data == "issues:list":
            await self.acknowledge(event)
            await self.handle_issues(event)
        elif data.startswith("template:"):
            await self.handle_template_callback(event, data)
        elif data.startswith("tasks:"):
            await self.handle_task_filter(event, data)
        else:
            await self.acknowledge(event)

    async def handle_role(self, event: IncomingEvent, data: str):
        parts = data.split(":")
        workspace_id = await self._workspace_id(event)
        if workspace_id is None or len(parts) != 4 or not parts[3].isdigit():
            await self.acknowledge(event)
            return

        member = await self.user_repo.get_by_id(parts[2])
        if member is None or member.workspace_id != workspace_id:
            await self.acknowledge(event, "Пользователь не найден", alert=True)
            return

        await self.role_repo.assign(member.id, int(parts[3]), workspace_id)
        await self.acknowledge(event, f"Роль назначена: {member.display_name}")

    async def handle_issue_status(self, event: IncomingEvent, data: str):
        parts = data.split(":")
        try:
            status = IssueStatus(parts[3])
        except (IndexError, ValueError):
            await self.acknowledge(event)
            return

        issue = await self.issue_repo.set_status(parts[2], status)
        await self.acknowledge(event, "Статус обновлен")
        if event.message_id:
            await self.transport.edit_message(
                event.chat_id, event.message_id, format_issue(issue), issue_status_keyboard(issue.id)
            )

    async def handle_template_callback(self, event: IncomingEvent, data: str):
        parts = data.split(":", 2)
        action = parts[1] if len(parts) > 1 else ""

        if action == "list":
            await self.acknowledge(event)
            await self.handle_templates(event)
        elif action == "create":
            await self.acknowledge(event)
            await self.start_dialog(event, TaskTemplateDialog().start(str(event.user_id)))
        elif action == "use" and len(parts) == 3:
            template = await self.template_repo.get_task_template(parts[2])
            if template is None:
                await self.acknowledge(event, "Шаблон не найден", alert=True)
                return
            await self.acknowledge(event)
            await self.start_dialog(
                event,
                TaskCreationDialog().start(
                    str(event.user_id), title=template.title, description=template.description
                ),
            )
        elif action == "delete" and len(parts) == 3:
            deleted = await self.template_repo.delete_task_template(parts[2])
            await self.acknowledge(event, "Шаблон удален" if deleted else "Шаблон не найден")
            await self.handle_templates(event)
        else:
            await self.acknowledge(event)

    async def handle_task_filter(self, event: IncomingEvent, data: str):
        """tasks:filter:<status> narrows the list, tasks:sort:<key> reorders it."""
        parts = data.split(":")
        if len(parts) != 3 or parts[1] not in ("filter", "sort"):
            await self.acknowledge(event)
            return

        workspace_id = await self._workspace_id(event)
        if workspace_id is None:
            return
        await self.acknowledge(event)

        if parts[1] == "filter":
            status_filter = parts[2] if parts[2] in FILTER_TITLES else "all"
            tasks = sort_tasks(await self.task_repo.list_for_workspace(workspace_id, status_filter), "deadline")
            title = FILTER_TITLES[status_filter]
        else:
            tasks = sort_tasks(await self.task_repo.list_for_workspace(workspace_id, "all"), parts[2])
            title = FILTER_TITLES["all"]

        text = format_task_list(tasks, mobile=self.is_compact(event), title=title)
        keyboard = admin_task_list_keyboard(tasks)
        if event.message_id:
            await self.transport.edit_message(event.chat_id, event.message_id, text, keyboard)
        else:
            await self.reply(event, text, keyboard)

    # ==================== PANELS ====================

    async def handle_panel(self, event: IncomingEvent):
        await self.reply(event, "🛠 Панель администратора", admin_panel_keyboard())

    async def handle_workspace(self, event: IncomingEvent):
        workspace_id = await self._workspace_id(event)
        if workspace_id is None:
            return
        workspace = await self.workspace_repo.get_by_id(workspace_id)
        tasks = await self.task_repo.list_for_workspace(workspace_id)
        stats = compute_workspace_stats(tasks, workspace.member_count)
        await self.reply(event, format_workspace_info(workspace, stats), workspace_panel_keyboard())

    async def handle_invite(self, event: IncomingEvent):
        workspace_id = await self._workspace_id(event)
        if workspace_id is None:
            return
        workspace = await self.workspace_repo.get_by_id(workspace_id)
        await self.reply(
            event,
            f"🔑 Код приглашения: {workspace.invite_code}\n"
            f"🔗 {invite_link(workspace.invite_code, settings.bot_username)}",
        )

    async def handle_stats(self, event: IncomingEvent):
        workspace_id = await self._workspace_id(event)
        if workspace_id is None:
            return
        tasks = await self.task_repo.list_for_workspace(workspace_id)
        total_users = await self.user_repo.count_by_workspace(workspace_id)
        stats = compute_workspace_stats(tasks, total_users)
        if self.is_compact(event):
            await self.reply(event, format_mobile_stats(stats))
        else:
            await self.reply(event, format_workspace_stats(stats))

    async def handle_members(self, event: IncomingEvent):
        workspace_id = await self._workspace_id(event)
        if workspace_id is None:
            return
        members = await self.user_repo.list_by_workspace(workspace_id)
        roles = await self.role_repo.list_roles()
        lines = ["👥 Участники", ""]
        lines += [f"• {m.display_name} - {m.role_name or 'без роли'}" for m in members]
        await self.reply(event, "\n".join(lines), members_keyboard(members, roles))

    async def handle_issues(self, event: IncomingEvent):
        workspace_id = await self._workspace_id(event)
        if workspace_id is None:
            return
        issues = await self.issue_repo.list_for_workspace(workspace_id)
        await self.reply(event, format_issue_list(issues))
        for issue in issues[:MAX_ISSUE_CARDS]:
            await self.reply(event, format_issue(issue), issue_status_keyboard(issue.id))

    async def handle_templates(self, event: IncomingEvent):
        workspace_id = await self._workspace_id(event)
        if workspace_id is None:
            return
        templates = await self.template_repo.list_task_templates(workspace_id)
        text = "📑 Шаблоны задач" if templates else "📑 Шаблонов пока нет"
        await self.reply(event, text, templates_keyboard(templates))

    # ==================== MENU ====================

    async def handle_create_task(self, event: IncomingEvent):
        if await self._workspace_id(event) is None:
            return
        await self.start_dialog(event, TaskCreationDialog().start(str(event.user_id)))

    async def handle_all_tasks(self, event: IncomingEvent):
        workspace_id = await self._workspace_id(event)
        if workspace_id is None:
            return
        tasks = sort_tasks(await self.task_repo.list_for_workspace(workspace_id), "deadline")
        text = format_task_list(tasks, mobile=self.is_compact(event), title=FILTER_TITLES["all"])
        await self.reply(event, text, admin_task_list_keyboard(tasks))

    async def handle_checklist(self, event: IncomingEvent):
        if await self._workspace_id(event) is None:
            return
        await self.start_dialog(event, ChecklistDialog().start(str(event.user_id)))
