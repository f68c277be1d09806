"""Task template and checklist dialogs."""

import re
from typing import List

from ...models.conversation import ConversationState, DialogAction
from ...models.task import ChecklistItemSpec, ChecklistType
from ..keyboards import checklist_type_keyboard
from .base import (
    Dialog,
    DialogEvent,
    EventKind,
    Transition,
    commit,
    passthrough,
    prompt,
    reject,
)

TEMPLATE_NAME_PROMPT = "Название шаблона?"
TEMPLATE_TITLE_PROMPT = "Заголовок задачи?"
TEMPLATE_DESCRIPTION_PROMPT = "Описание задачи?"
TEMPLATE_HOURS_PROMPT = "Сколько часов дается на выполнение (например, 24)?"
BAD_HOURS = "Введите число часов (минимум 1):"

CHECKLIST_NAME_PROMPT = "Название чек-листа?"
CHECKLIST_TYPE_PROMPT = "Тип чек-листа: opening, closing или daily?"
CHECKLIST_ITEMS_PROMPT = "Пункты чек-листа, по одному на строку:"

PHOTO_KEYWORDS = re.compile(r"photo|сфот", re.IGNORECASE)
COMPLEX_KEYWORDS = re.compile(r"complex|cash|касс", re.IGNORECASE)
TABLE_KEYWORDS = re.compile(r"table|arrange|сервир|стол", re.IGNORECASE)

BASE_REWARD = 10
TABLE_REWARD = 25
COMPLEX_REWARD = 50
PHOTO_BONUS = 25


def parse_checklist_items(text: str) -> List[ChecklistItemSpec]:
    """One item per non-empty line; reward and photo flag come from keywords."""
    items = []
    for line in text.splitlines():
        item = line.strip().lstrip("-•*").strip()
        if not item:
            continue

        requires_photo = bool(PHOTO_KEYWORDS.search(item))
        if COMPLEX_KEYWORDS.search(item):
            reward = COMPLEX_REWARD
        elif TABLE_KEYWORDS.search(item):
            reward = TABLE_REWARD
        else:
            reward = BASE_REWARD
        if requires_photo:
            reward += PHOTO_BONUS

        items.append(ChecklistItemSpec(text=item, reward=reward, requires_photo=requires_photo))
    return items


class TaskTemplateDialog(Dialog):
    action = DialogAction.CREATING_TEMPLATE

    def start(self, user_id: str) -> Transition:
        return prompt(self.new_state(user_id, "name"), TEMPLATE_NAME_PROMPT)

    def _on_name(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        if not event.text.strip():
            return reject(state, TEMPLATE_NAME_PROMPT)
        return prompt(state.advance("title", name=event.text.strip()), TEMPLATE_TITLE_PROMPT)

    def _on_title(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        if not event.text.strip():
            return reject(state, TEMPLATE_TITLE_PROMPT)
        return prompt(state.advance("description", title=event.text.strip()), TEMPLATE_DESCRIPTION_PROMPT)

    def _on_description(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        return prompt(state.advance("deadline_hours", description=event.text.strip()), TEMPLATE_HOURS_PROMPT)

    def _on_deadline_hours(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        raw = event.text.strip()
        if not raw.isdigit() or int(raw) < 1:
            return reject(state, BAD_HOURS)
        return commit(
            state,
            name=state.data["name"],
            title=state.data["title"],
            description=state.data.get("description", ""),
            default_deadline_hours=int(raw),
        )


class ChecklistDialog(Dialog):
    action = DialogAction.CREATING_CHECKLIST

    def start(self, user_id: str) -> Transition:
        return prompt(self.new_state(user_id, "name"), CHECKLIST_NAME_PROMPT)

    def _on_name(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        if not event.text.strip():
            return reject(state, CHECKLIST_NAME_PROMPT)
        return prompt(
            state.advance("type", name=event.text.strip()),
            CHECKLIST_TYPE_PROMPT,
            checklist_type_keyboard(),
        )

    def _on_type(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if event.kind == EventKind.BUTTON and event.data.startswith("checklist:type:"):
            raw = event.data.rsplit(":", 1)[-1]
        elif event.is_answer:
            raw = event.text.strip().lower()
        else:
            return passthrough(state)

        try:
            kind = ChecklistType(raw)
        except ValueError:
            return reject(state, CHECKLIST_TYPE_PROMPT, checklist_type_keyboard())
        return prompt(state.advance("items", type=kind.value), CHECKLIST_ITEMS_PROMPT)

    def _on_items(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        items = parse_checklist_items(event.text)
        if not items:
            return reject(state, CHECKLIST_ITEMS_PROMPT)
        return commit(
            state,
            name=state.data["name"],
            type=state.data["type"],
            items=[item.model_dump() for item in items],
        )
