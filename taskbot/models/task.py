"""Task, issue and workspace read models handed to formatters and handlers."""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Stored task status. "Overdue" is derived, never stored."""
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    PENDING_REVIEW = "pending_review"  # Assignee marked it done
    APPROVED = "approved"
    REJECTED = "rejected"


ACTIVE_STATUSES = (TaskStatus.ASSIGNED, TaskStatus.IN_PROGRESS)


class IssueStatus(str, Enum):
    """Operational issue lifecycle."""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class ChecklistType(str, Enum):
    """When a checklist is meant to be run."""
    OPENING = "opening"
    CLOSING = "closing"
    DAILY = "daily"


class TaskView(BaseModel):
    """A task as seen by formatters and handlers."""

    id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.ASSIGNED
    deadline: Optional[datetime] = None  # naive local time
    created_at: datetime = Field(default_factory=datetime.now)
    workspace_id: Optional[str] = None

    # Denormalized people
    assignee_id: Optional[str] = None
    assignee_username: Optional[str] = None
    assignee_telegram_id: Optional[int] = None
    creator_username: Optional[str] = None


class IssueView(BaseModel):
    """A reported operational issue."""

    id: str
    category: str
    description: str = ""
    status: IssueStatus = IssueStatus.NEW
    photo_url: Optional[str] = None
    task_id: Optional[str] = None
    reporter_username: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class WorkspaceView(BaseModel):
    """Workspace summary."""

    id: str
    name: str
    invite_code: str
    timezone: str = "Asia/Irkutsk"
    member_count: int = 0


class UserView(BaseModel):
    """A chat user known to the system."""

    id: str
    telegram_id: int
    username: Optional[str] = None
    first_name: Optional[str] = None
    workspace_id: Optional[str] = None
    role_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.username:
            return f"@{self.username}"
        return self.first_name or str(self.telegram_id)


class TaskTemplateView(BaseModel):
    """Reusable task blueprint."""

    id: str
    name: str
    title: str
    description: str = ""
    default_deadline_hours: int = 24


class ChecklistItemSpec(BaseModel):
    """One checklist line with its derived reward and photo flag."""

    text: str
    reward: int = 10
    requires_photo: bool = False


class WorkspaceStats(BaseModel):
    """Aggregate task counters for a workspace."""

    total_tasks: int = 0
    completed: int = 0
    active: int = 0
    pending_review: int = 0
    overdue: int = 0
    total_users: int = 0

    @property
    def completion_rate(self) -> int:
        if not self.total_tasks:
            return 0
        return round(self.completed * 100 / self.total_tasks)


