"""Issue report: category (button) → description → photo or skip → commit."""

from typing import Optional

from ...models.conversation import ConversationState, DialogAction
from ..keyboards import issue_category_keyboard, skip_photo_keyboard
from .base import Dialog, DialogEvent, EventKind, Transition, commit, passthrough, prompt, reject

CATEGORY_PROMPT = "Выберите категорию проблемы:"
DESCRIPTION_PROMPT = "Опишите проблему:"
PHOTO_PROMPT = "Прикрепите фото или отправьте /skip:"


class IssueReportDialog(Dialog):
    action = DialogAction.REPORTING_ISSUE

    def start(self, user_id: str, task_id: Optional[str] = None) -> Transition:
        state = self.new_state(user_id, "category", task_id=task_id)
        return prompt(state, CATEGORY_PROMPT, issue_category_keyboard())

    def _on_category(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if event.kind != EventKind.BUTTON or not event.data.startswith("issue:cat:"):
            return passthrough(state)
        category = event.data[len("issue:cat:"):]
        return prompt(state.advance("description", category=category), DESCRIPTION_PROMPT)

    def _on_description(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        if not event.text.strip():
            return reject(state, DESCRIPTION_PROMPT)
        return prompt(
            state.advance("photo", description=event.text.strip()),
            PHOTO_PROMPT,
            skip_photo_keyboard(),
        )

    def _on_photo(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if event.kind == EventKind.PHOTO and event.photo_file_id:
            photo = event.photo_file_id
        elif event.text.strip() == "/skip" or event.data == "issue:skip":
            photo = None
        else:
            return passthrough(state)

        return commit(
            state,
            category=state.data["category"],
            description=state.data["description"],
            task_id=state.data.get("task_id"),
            photo_file_id=photo,
        )
