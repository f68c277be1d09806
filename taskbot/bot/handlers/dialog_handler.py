"""
DialogHandler - drives the active dialog of a user.

Runs the dialog's step function on each event, stores the next state,
renders the outcome and performs the external write when a dialog
commits. Events the dialog does not expect are left to the other
handlers.
"""
from typing import Any, Dict

from config import settings
from ...models.conversation import ConversationState, DialogAction
from ...database.repositories import OWNER_ROLE_NAMES
from ...utils.formatters import (
    format_invite_info,
    format_issue,
    format_new_task_notice,
    format_task_created,
    invite_link,
)
from ..base_handler import BaseHandler, IncomingEvent, NO_WORKSPACE, GENERIC_FAILURE
from ..dialogs import DIALOGS, OutcomeKind
from ..dialogs.onboarding import NAME_STEP, OnboardingDialog
from ..keyboards import issue_status_keyboard, task_actions_keyboard

ASSIGNEE_NOT_FOUND = "Пользователь не найден в рабочем пространстве."


class DialogHandler(BaseHandler):
    """Consumes events that belong to the user's current dialog."""

    async def can_handle(self, event: IncomingEvent) -> bool:
        return await self.conversations.get(str(event.user_id)) is not None

    async def handle(self, event: IncomingEvent) -> bool:
        user_key = str(event.user_id)
        state = await self.conversations.get(user_key)
        if state is None:
            return False

        dialog = DIALOGS.get(state.action)
        if dialog is None:
            await self.conversations.delete(user_key)
            return False

        transition = dialog.step(state, event.to_dialog_event())
        outcome = transition.outcome

        if outcome.kind == OutcomeKind.PASS:
            return False

        await self.acknowledge(event)

        if outcome.kind == OutcomeKind.PROMPT:
            await self.conversations.set(user_key, transition.state)
            await self.reply(event, outcome.text, outcome.keyboard)

        elif outcome.kind in (OutcomeKind.REJECT, OutcomeKind.SHOW):
            await self.reply(event, outcome.text, outcome.keyboard)

        elif outcome.kind == OutcomeKind.DONE:
            await self.conversations.delete(user_key)
            await self.reply_with_menu(event, outcome.text)

        elif outcome.kind == OutcomeKind.COMMIT:
            try:
                await self.commit(event, transition.state, outcome.payload)
            except Exception as e:
                self.logger.error(f"Commit of {state.action.value} failed: {e}", exc_info=True)
                await self.conversations.delete(user_key)
                await self.send_error(event, GENERIC_FAILURE)

        return True

    async def commit(self, event: IncomingEvent, state: ConversationState, payload: Dict[str, Any]):
        committers = {
            DialogAction.CREATING_TASK: self._commit_task,
            DialogAction.CREATING_WORKSPACE: self._commit_workspace,
            DialogAction.JOINING_WORKSPACE: self._commit_join,
            DialogAction.CREATING_TEMPLATE: self._commit_template,
            DialogAction.CREATING_CHECKLIST: self._commit_checklist,
            DialogAction.REPORTING_ISSUE: self._commit_issue,
            DialogAction.EDITING_NAME: self._commit_name,
        }
        await committers[state.action](event, state, payload)

    # ==================== COMMITS ====================

    async def _commit_task(self, event: IncomingEvent, state: ConversationState, payload: Dict[str, Any]):
        await self.conversations.delete(str(event.user_id))

        creator = await self.user_repo.get_by_telegram_id(event.user_id)
        if creator is None or not creator.workspace_id:
            await self.reply(event, NO_WORKSPACE)
            return

        reference = payload["assignee"]
        if reference.isdigit():
            assignee = await self.user_repo.get_by_telegram_id(int(reference))
        else:
            assignee = await self.user_repo.get_by_username(reference, workspace_id=creator.workspace_id)

        if assignee is None or assignee.workspace_id != creator.workspace_id:
            await self.reply(event, ASSIGNEE_NOT_FOUND)
            return

        task = await self.task_repo.create(
            creator.workspace_id,
            creator.id,
            assignee.id,
            payload["title"],
            payload["description"],
            payload["deadline"],
        )
        await self.reply_with_menu(event, format_task_created(task))

        await self.best_effort(
            f"Task notice to {assignee.telegram_id}",
            self.transport.send_message(
                assignee.telegram_id,
                format_new_task_notice(task),
                task_actions_keyboard(task),
            ),
        )

    async def _commit_workspace(self, event: IncomingEvent, state: ConversationState, payload: Dict[str, Any]):
        await self.conversations.delete(str(event.user_id))

        user = await self.current_user(event)
        workspace = await self.workspace_repo.create(payload["name"], created_by=user.id)
        await self.user_repo.set_workspace(user.id, workspace.id)

        owner = await self.role_repo.get_by_names(OWNER_ROLE_NAMES)
        if owner is not None:
            await self.best_effort(
                f"Owner role for {user.id}",
                self.role_repo.assign(user.id, owner.id, workspace.id),
            )
        else:
            self.logger.info("No owner role defined, skipping role assignment")

        link = invite_link(workspace.invite_code, settings.bot_username)
        await self.reply_with_menu(event, format_invite_info(workspace, link))

    async def _commit_join(self, event: IncomingEvent, state: ConversationState, payload: Dict[str, Any]):
        await self.conversations.delete(str(event.user_id))
        await self.join_workspace(event, payload["code"])

    async def _commit_template(self, event: IncomingEvent, state: ConversationState, payload: Dict[str, Any]):
        await self.conversations.delete(str(event.user_id))

        user = await self.user_repo.get_by_telegram_id(event.user_id)
        if user is None or not user.workspace_id:
            await self.reply(event, NO_WORKSPACE)
            return

        template = await self.template_repo.create_task_template(
            user.workspace_id,
            payload["name"],
            payload["title"],
            payload["description"],
            payload["default_deadline_hours"],
            created_by=user.id,
        )
        await self.reply_with_menu(
            event,
            f"✅ Шаблон «{template.name}» сохранен.\n"
            f"Срок по умолчанию: {template.default_deadline_hours} ч.",
        )

    async def _commit_checklist(self, event: IncomingEvent, state: ConversationState, payload: Dict[str, Any]):
        await self.conversations.delete(str(event.user_id))

        user = await self.user_repo.get_by_telegram_id(event.user_id)
        if user is None or not user.workspace_id:
            await self.reply(event, NO_WORKSPACE)
            return

        items = payload["items"]
        await self.template_repo.create_checklist(
            user.workspace_id,
            payload["name"],
            payload["type"],
            items,
            created_by=user.id,
        )

        lines = [f"✅ Чек-лист «{payload['name']}» сохранен ({len(items)} пунктов):", ""]
        for item in items:
            photo = " 📷" if item["requires_photo"] else ""
            lines.append(f"• {item['text']} (+{item['reward']} XP){photo}")
        await self.reply_with_menu(event, "\n".join(lines))

    async def _commit_issue(self, event: IncomingEvent, state: ConversationState, payload: Dict[str, Any]):
        await self.conversations.delete(str(event.user_id))

        user = await self.current_user(event)

        photo_url = None
        if payload.get("photo_file_id"):
            try:
                photo_url = await self.transport.get_file_link(payload["photo_file_id"])
            except Exception as e:
                self.logger.warning(f"Could not resolve photo link: {e}")

        issue = await self.issue_repo.create(
            user.workspace_id,
            user.id,
            payload["category"],
            payload["description"],
            photo_url=photo_url,
            task_id=payload.get("task_id"),
        )
        await self.reply_with_menu(event, "✅ Спасибо! Проблема зарегистрирована.")
        await self.notify_admin(format_issue(issue), issue_status_keyboard(issue.id))

    async def _commit_name(self, event: IncomingEvent, state: ConversationState, payload: Dict[str, Any]):
        """Save the new name and return to the profile screen of the tour."""
        await self.user_repo.update_username(event.user_id, payload["name"])

        transition = OnboardingDialog().show_step(state.advance(state.step, name=payload["name"]), NAME_STEP)
        await self.conversations.set(str(event.user_id), transition.state)
        await self.reply(event, f"✅ Имя обновлено: {payload['name']}")
        await self.reply(event, transition.outcome.text, transition.outcome.keyboard)
