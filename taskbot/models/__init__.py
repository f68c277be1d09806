from .task import (
    TaskStatus,
    ACTIVE_STATUSES,
    IssueStatus,
    ChecklistType,
    TaskView,
    IssueView,
    WorkspaceView,
    UserView,
    TaskTemplateView,
    ChecklistItemSpec,
    WorkspaceStats,
)
from .conversation import ConversationState, DialogAction

__all__ = [
    "TaskStatus",
    "ACTIVE_STATUSES",
    "IssueStatus",
    "ChecklistType",
    "TaskView",
    "IssueView",
    "WorkspaceView",
    "UserView",
    "TaskTemplateView",
    "ChecklistItemSpec",
    "WorkspaceStats",
    "ConversationState",
    "DialogAction",
]
