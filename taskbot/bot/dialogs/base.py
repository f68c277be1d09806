"""
Dialog building blocks.

A dialog is a pure transition function:

    step(state, event, now) -> Transition(next_state, outcome)

`next_state` is None when the dialog ends. The outcome tells the caller
what to do next: show a prompt, repeat it after invalid input, show extra
content, run the commit, finish, or hand the event back to the generic
command routing (PASS).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from ...models.conversation import ConversationState, DialogAction
from ..keyboards import MENU_LABELS


class EventKind(str, Enum):
    TEXT = "text"
    BUTTON = "button"
    PHOTO = "photo"


@dataclass
class DialogEvent:
    """One inbound user event, stripped of transport details."""

    kind: EventKind
    text: str = ""
    data: str = ""  # callback data for buttons
    photo_file_id: Optional[str] = None

    @classmethod
    def text_message(cls, text: str) -> "DialogEvent":
        return cls(kind=EventKind.TEXT, text=text)

    @classmethod
    def button(cls, data: str) -> "DialogEvent":
        return cls(kind=EventKind.BUTTON, data=data)

    @classmethod
    def photo(cls, file_id: str, caption: str = "") -> "DialogEvent":
        return cls(kind=EventKind.PHOTO, text=caption, photo_file_id=file_id)

    @property
    def is_command(self) -> bool:
        return self.kind == EventKind.TEXT and self.text.startswith("/")

    @property
    def is_answer(self) -> bool:
        """Plain text that can fill a dialog field (not a command or menu label)."""
        return (
            self.kind == EventKind.TEXT
            and not self.is_command
            and self.text.strip() not in MENU_LABELS
        )


class OutcomeKind(str, Enum):
    PROMPT = "prompt"    # moved to a new step, ask for its field
    REJECT = "reject"    # invalid input, same step, ask again
    SHOW = "show"        # auxiliary content, same step
    COMMIT = "commit"    # all fields collected, run the external write
    DONE = "done"        # dialog finished without a write
    PASS = "pass"        # event is not for this dialog


@dataclass
class Outcome:
    kind: OutcomeKind
    text: str = ""
    keyboard: Any = None
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Transition:
    state: Optional[ConversationState]
    outcome: Outcome


class Dialog:
    """
    Base class for step machines.

    Subclasses set `action` and implement `_on_<step>(state, event, now)`
    for each step tag.
    """

    action: DialogAction

    def new_state(self, user_id: str, step: str, **data: Any) -> ConversationState:
        return ConversationState(user_id=str(user_id), action=self.action, step=step, data=data)

    def step(
        self,
        state: ConversationState,
        event: DialogEvent,
        now: Optional[datetime] = None,
    ) -> Transition:
        handler = getattr(self, f"_on_{state.step}", None)
        if handler is None:
            return passthrough(state)
        return handler(state, event, now)


def prompt(state: ConversationState, text: str, keyboard: Any = None) -> Transition:
    return Transition(state, Outcome(OutcomeKind.PROMPT, text, keyboard))


def reject(state: ConversationState, text: str, keyboard: Any = None) -> Transition:
    return Transition(state, Outcome(OutcomeKind.REJECT, text, keyboard))


def show(state: ConversationState, text: str, keyboard: Any = None) -> Transition:
    return Transition(state, Outcome(OutcomeKind.SHOW, text, keyboard))


def commit(state: ConversationState, **payload: Any) -> Transition:
    return Transition(state, Outcome(OutcomeKind.COMMIT, payload=payload))


def done(text: str = "", keyboard: Any = None) -> Transition:
    return Transition(None, Outcome(OutcomeKind.DONE, text, keyboard))


def passthrough(state: ConversationState) -> Transition:
    return Transition(state, Outcome(OutcomeKind.PASS))
