"""
TaskHandler - inline buttons on individual tasks.

task:view / task:details, task:complete (→ pending_review, admin asked to
review), task:issue, task:approve / task:reject (admin), task:remind
(admin), plus invite-link joins (ws:join) and inert buttons (noop).
"""
from ...database.exceptions import EntityNotFoundError
from ...models.task import ACTIVE_STATUSES, TaskStatus
from ...utils.formatters import (
    format_reminder_message,
    format_review_request,
    format_task_details,
)
from ..base_handler import BaseHandler, IncomingEvent, NOT_ALLOWED
from ..dialogs import IssueReportDialog
from ..keyboards import review_keyboard, task_actions_keyboard

TASK_NOT_FOUND = "Задача не найдена"


class TaskHandler(BaseHandler):
    """Handles task buttons."""

    async def can_handle(self, event: IncomingEvent) -> bool:
        return event.is_callback and (
            event.callback_data.startswith(("task:", "ws:join:"))
            or event.callback_data == "noop"
        )

    async def handle(self, event: IncomingEvent) -> bool:
        data = event.callback_data
        if data == "noop":
            await self.acknowledge(event)
            return True

        if data.startswith("ws:join:"):
            await self.acknowledge(event)
            await self.join_workspace(event, data.split(":", 2)[2])
            return True

        parts = data.split(":", 2)
        if len(parts) != 3:
            await self.acknowledge(event)
            return True
        _, action, task_id = parts

        task = await self.task_repo.get(task_id)
        if task is None:
            await self.acknowledge(event, TASK_NOT_FOUND, alert=True)
            return True

        handlers = {
            "view": self.handle_view,
            "details": self.handle_view,
            "complete": self.handle_complete,
            "issue": self.handle_issue,
            "approve": self.handle_review,
            "reject": self.handle_review,
            "remind": self.handle_remind,
        }
        handler = handlers.get(action)
        if handler is None:
            await self.acknowledge(event)
            return True

        await handler(event, task, action)
        return True

    async def handle_view(self, event: IncomingEvent, task, action: str):
        await self.acknowledge(event)
        await self.reply(event, format_task_details(task), task_actions_keyboard(task, self.is_admin(event)))

    async def _is_assignee(self, event: IncomingEvent, task) -> bool:
        if task.assignee_telegram_id is not None:
            return task.assignee_telegram_id == event.user_id
        user = await self.user_repo.get_by_telegram_id(event.user_id)
        return user is not None and user.id == task.assignee_id

    async def handle_complete(self, event: IncomingEvent, task, action: str):
        if not await self._is_assignee(event, task):
            await self.acknowledge(event, NOT_ALLOWED, alert=True)
            return
        if task.status not in ACTIVE_STATUSES:
            await self.acknowledge(event, "Задача уже закрыта или на проверке")
            return

        task = await self.task_repo.set_status(task.id, TaskStatus.PENDING_REVIEW)
        await self.acknowledge(event, "Отправлено на проверку")
        await self.reply(event, "✅ Задача отправлена на проверку.")
        await self.notify_admin(format_review_request(task), review_keyboard(task.id))

    async def handle_issue(self, event: IncomingEvent, task, action: str):
        if not await self._is_assignee(event, task):
            await self.acknowledge(event, NOT_ALLOWED, alert=True)
            return

        if task.status in ACTIVE_STATUSES:
            await self.task_repo.set_status(task.id, TaskStatus.PENDING_REVIEW)
        await self.acknowledge(event)
        await self.start_dialog(event, IssueReportDialog().start(str(event.user_id), task_id=task.id))

    async def handle_review(self, event: IncomingEvent, task, action: str):
        if not self.is_admin(event):
            await self.acknowledge(event, NOT_ALLOWED, alert=True)
            return

        approved = action == "approve"
        try:
            task = await self.task_repo.set_status(
                task.id, TaskStatus.APPROVED if approved else TaskStatus.REJECTED
            )
        except EntityNotFoundError:
            await self.acknowledge(event, TASK_NOT_FOUND, alert=True)
            return

        await self.acknowledge(event, "Готово")
        await self.reply(event, f"{'✅ Принята' if approved else '❌ Отклонена'}: {task.title}")

        if task.assignee_telegram_id:
            text = (
                f"✅ Ваша задача «{task.title}» принята!"
                if approved
                else f"❌ Задача «{task.title}» отклонена. Свяжитесь с администратором."
            )
            await self.best_effort(
                f"Review notice to {task.assignee_telegram_id}",
                self.transport.send_message(task.assignee_telegram_id, text),
            )

    async def handle_remind(self, event: IncomingEvent, task, action: str):
        if not self.is_admin(event):
            await self.acknowledge(event, NOT_ALLOWED, alert=True)
            return
        if not task.assignee_telegram_id:
            await self.acknowledge(event, "У задачи нет исполнителя", alert=True)
            return

        await self.transport.send_message(
            task.assignee_telegram_id,
            format_reminder_message(
                task,
                admin_username=event.username or "admin",
                mobile=self.compact_for(task.assignee_username),
            ),
            task_actions_keyboard(task),
        )
        if task.status == TaskStatus.ASSIGNED:
            await self.task_repo.set_status(task.id, TaskStatus.IN_PROGRESS)
        await self.acknowledge(event, "Напоминание отправлено")
