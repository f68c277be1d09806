"""Step machines for the bot's multi-step dialogs."""

from ...models.conversation import DialogAction
from .base import (
    Dialog,
    DialogEvent,
    EventKind,
    Outcome,
    OutcomeKind,
    Transition,
)
from .issue_report import IssueReportDialog
from .onboarding import EditNameDialog, OnboardingDialog
from .task_creation import TaskCreationDialog
from .templates import ChecklistDialog, TaskTemplateDialog, parse_checklist_items
from .workspace import CreateWorkspaceDialog, JoinWorkspaceDialog

DIALOGS = {
    DialogAction.CREATING_TASK: TaskCreationDialog(),
    DialogAction.CREATING_WORKSPACE: CreateWorkspaceDialog(),
    DialogAction.JOINING_WORKSPACE: JoinWorkspaceDialog(),
    DialogAction.CREATING_TEMPLATE: TaskTemplateDialog(),
    DialogAction.CREATING_CHECKLIST: ChecklistDialog(),
    DialogAction.REPORTING_ISSUE: IssueReportDialog(),
    DialogAction.ONBOARDING: OnboardingDialog(),
    DialogAction.EDITING_NAME: EditNameDialog(),
}

__all__ = [
    "DIALOGS",
    "Dialog",
    "DialogEvent",
    "EventKind",
    "Outcome",
    "OutcomeKind",
    "Transition",
    "ChecklistDialog",
    "CreateWorkspaceDialog",
    "EditNameDialog",
    "IssueReportDialog",
    "JoinWorkspaceDialog",
    "OnboardingDialog",
    "TaskCreationDialog",
    "TaskTemplateDialog",
    "parse_checklist_items",
]
