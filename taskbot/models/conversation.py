"""Conversation state model for multi-step dialogs."""

from datetime import datetime
from enum import Enum
from typing import Dict, Any
from pydantic import BaseModel, Field


class DialogAction(str, Enum):
    """Which dialog a user is currently in."""
    CREATING_TASK = "creating_task"
    CREATING_WORKSPACE = "creating_workspace"
    JOINING_WORKSPACE = "joining_workspace"
    CREATING_TEMPLATE = "creating_template"
    CREATING_CHECKLIST = "creating_checklist"
    REPORTING_ISSUE = "reporting_issue"
    ONBOARDING = "onboarding"
    EDITING_NAME = "editing_name"  # Nested in onboarding


class ConversationState(BaseModel):
    """
    One in-progress dialog per user.

    `step` is a tag owned by the dialog named in `action`; `data` holds the
    fields collected so far.
    """

    user_id: str
    action: DialogAction
    step: str
    data: Dict[str, Any] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def advance(self, step: str, **fields: Any) -> "ConversationState":
        """Copy of this state moved to `step` with `fields` merged into data."""
        return self.model_copy(update={
            "step": step,
            "data": {**self.data, **fields},
            "updated_at": datetime.now(),
        })
