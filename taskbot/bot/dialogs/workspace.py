"""Workspace creation (name → commit) and join (code → commit)."""

from ...models.conversation import ConversationState, DialogAction
from .base import Dialog, DialogEvent, Transition, commit, passthrough, prompt, reject

NAME_PROMPT = "Введите название рабочего пространства:"
EMPTY_NAME = "Название не может быть пустым. Введите название:"
NAME_MAX_LENGTH = 80

CODE_PROMPT = "Введите код приглашения (6 символов):"
BAD_CODE_LENGTH = "Код должен содержать 6 символов. Попробуйте еще раз:"
INVITE_CODE_LENGTH = 6


class CreateWorkspaceDialog(Dialog):
    action = DialogAction.CREATING_WORKSPACE

    def start(self, user_id: str) -> Transition:
        return prompt(self.new_state(user_id, "name"), NAME_PROMPT)

    def _on_name(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        name = event.text.strip()[:NAME_MAX_LENGTH].strip()
        if not name:
            return reject(state, EMPTY_NAME)
        return commit(state, name=name)


class JoinWorkspaceDialog(Dialog):
    """
    A code of the wrong length is asked for again; a well-formed code that
    matches no workspace ends the dialog (decided at commit time).
    """

    action = DialogAction.JOINING_WORKSPACE

    def start(self, user_id: str) -> Transition:
        return prompt(self.new_state(user_id, "code"), CODE_PROMPT)

    def _on_code(self, state: ConversationState, event: DialogEvent, now=None) -> Transition:
        if not event.is_answer:
            return passthrough(state)
        code = event.text.strip().upper()
        if len(code) != INVITE_CODE_LENGTH:
            return reject(state, BAD_CODE_LENGTH)
        return commit(state, code=code)
