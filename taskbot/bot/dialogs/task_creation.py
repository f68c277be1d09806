"""Task creation: title → description → assignee → deadline → commit."""

from datetime import datetime
from typing import Optional

from ...models.conversation import ConversationState, DialogAction
from ...utils.date_parser import is_past, resolve, resolve_quick_code
from ..keyboards import back_to_quick_keyboard, deadline_keyboard
from .base import (
    Dialog,
    DialogEvent,
    EventKind,
    Transition,
    commit,
    passthrough,
    prompt,
    reject,
    show,
)

TITLE_PROMPT = "Название задачи?"
DESCRIPTION_PROMPT = "Описание задачи?"
ASSIGNEE_PROMPT = "Назначить (username или Telegram ID)?"
DEADLINE_PROMPT = "Когда нужно сделать?\n\nВыберите быстро или введите дату:"
CUSTOM_DEADLINE_HINT = (
    "Введите дату своими словами, например:\n"
    "• завтра в 15:00\n"
    "• через 3 часа\n"
    "• в пятницу\n"
    "• 25 декабря 10:00"
)
UNPARSED_DATE = (
    "Не удалось распознать дату. Попробуйте «завтра в 15:00» "
    "или выберите вариант ниже:"
)
PAST_DATE = "Дата не может быть в прошлом. Выберите другое время:"


class TaskCreationDialog(Dialog):
    action = DialogAction.CREATING_TASK

    def start(self, user_id: str, title: str = "", description: str = "", now: Optional[datetime] = None) -> Transition:
        """Fresh dialog, or one prefilled from a template (skips to the assignee)."""
        if title:
            state = self.new_state(user_id, "assignee", title=title, description=description)
            return prompt(state, f"📄 {title}\n\n{ASSIGNEE_PROMPT}")
        return prompt(self.new_state(user_id, "title"), TITLE_PROMPT)

    def _on_title(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        title = event.text.strip()
        if not title:
            return reject(state, TITLE_PROMPT)
        return prompt(state.advance("description", title=title), DESCRIPTION_PROMPT)

    def _on_description(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        return prompt(state.advance("assignee", description=event.text.strip()), ASSIGNEE_PROMPT)

    def _on_assignee(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        assignee = event.text.strip().lstrip("@")
        if not assignee:
            return reject(state, ASSIGNEE_PROMPT)
        return prompt(state.advance("deadline", assignee=assignee), DEADLINE_PROMPT, deadline_keyboard(now))

    def _on_deadline(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if event.kind == EventKind.BUTTON and event.data.startswith("deadline:"):
            if event.data == "deadline:custom":
                return show(state, CUSTOM_DEADLINE_HINT, back_to_quick_keyboard())
            if event.data == "deadline:quick":
                return show(state, DEADLINE_PROMPT, deadline_keyboard(now))
            deadline = resolve_quick_code(event.data, now)
        elif event.is_answer:
            deadline = resolve(event.text, now)
        else:
            return passthrough(state)

        if deadline is None:
            return reject(state, UNPARSED_DATE, deadline_keyboard(now))
        if is_past(deadline, now):
            return reject(state, PAST_DATE, deadline_keyboard(now))

        return commit(
            state,
            title=state.data["title"],
            description=state.data.get("description", ""),
            assignee=state.data["assignee"],
            deadline=deadline,
        )
