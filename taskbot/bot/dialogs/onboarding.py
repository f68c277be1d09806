"""
Onboarding tour.

A cursor over four screens moved with next/prev buttons (clamped to 1..4),
plus side actions: help, change_workspace (info only), edit_name (nested
one-field dialog) and complete.
"""

from typing import Any, Dict

from ...models.conversation import ConversationState, DialogAction
from ..keyboards import onboarding_back_keyboard, onboarding_keyboard
from .base import (
    Dialog,
    DialogEvent,
    EventKind,
    Transition,
    commit,
    done,
    passthrough,
    prompt,
    reject,
    show,
)

FIRST_STEP = 1
LAST_STEP = 4
NAME_STEP = 2
NAME_MIN_LENGTH = 2

HELP_TEXT = (
    "❓ Помощь\n\n"
    "📋 Мои задачи: список ваших задач и их дедлайны\n"
    "✅ Выполнено: отправляет задачу на проверку администратору\n"
    "🛠 Сообщить о проблеме: поломки, уборка, инвентарь\n"
    "👤 Профиль: ваше имя, роль и рабочее пространство\n\n"
    "Команды: /start, /help, /profile"
)
CHANGE_WORKSPACE_TEXT = "Чтобы сменить рабочее пространство, обратитесь к админу."
NAME_PROMPT = "Введите новое имя (минимум 2 символа):"
SHORT_NAME = "Имя должно содержать минимум 2 символа. Попробуйте еще раз:"
COMPLETE_TEXT = "🚀 Отлично! Можно начинать работу."


def render_step(step: int, data: Dict[str, Any]) -> str:
    if step == 1:
        return (
            "👋 Добро пожаловать!\n\n"
            "Этот бот помогает команде ставить задачи, следить за дедлайнами "
            "и сообщать о проблемах."
        )
    if step == 2:
        return (
            "👤 Ваш профиль\n\n"
            f"Имя в системе: {data.get('name') or 'не указано'}\n"
            "По этому имени вам назначают задачи."
        )
    if step == 3:
        workspace = data.get("workspace")
        if workspace:
            return f"🏢 Рабочее пространство\n\nВы состоите в «{workspace}»."
        return (
            "🏢 Рабочее пространство\n\n"
            "Вы пока не в рабочем пространстве. Попросите у администратора "
            "код приглашения."
        )
    return (
        "✅ Готово!\n\n"
        "Новые задачи будут приходить сюда. Когда закончите, нажмите "
        "«Выполнено», и администратор проверит работу."
    )


class OnboardingDialog(Dialog):
    action = DialogAction.ONBOARDING

    def start(self, user_id: str, name: str = "", workspace: str = "") -> Transition:
        return self.show_step(self.new_state(user_id, str(FIRST_STEP), name=name, workspace=workspace), FIRST_STEP)

    def show_step(self, state: ConversationState, step: int) -> Transition:
        step = min(max(step, FIRST_STEP), LAST_STEP)
        state = state.model_copy(update={"action": self.action}).advance(str(step))
        return prompt(state, render_step(step, state.data), onboarding_keyboard(step, LAST_STEP))

    def step(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if event.kind != EventKind.BUTTON or not event.data.startswith("onboarding:"):
            return passthrough(state)

        cursor = int(state.step)
        choice = event.data.split(":", 1)[1]

        if choice == "next":
            return self.show_step(state, cursor + 1)
        if choice == "prev":
            return self.show_step(state, cursor - 1)
        if choice == "back":
            return show(state, render_step(cursor, state.data), onboarding_keyboard(cursor, LAST_STEP))
        if choice == "help":
            return show(state, HELP_TEXT, onboarding_back_keyboard())
        if choice == "change_workspace":
            return show(state, CHANGE_WORKSPACE_TEXT, onboarding_back_keyboard())
        if choice == "edit_name":
            editing = state.model_copy(update={"action": DialogAction.EDITING_NAME}).advance("name")
            return prompt(editing, NAME_PROMPT)
        if choice == "complete":
            return done(COMPLETE_TEXT)
        return passthrough(state)


class EditNameDialog(Dialog):
    """Nested in onboarding; the caller returns to the profile screen after commit."""

    action = DialogAction.EDITING_NAME

    def _on_name(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        name = event.text.strip()
        if len(name) < NAME_MIN_LENGTH:
            return reject(state, SHORT_NAME)
        return commit(state, name=name)
