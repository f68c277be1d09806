"""Repositories: the only code that talks to the database."""

from .users import UserRepository, get_user_repository
from .workspaces import WorkspaceRepository, get_workspace_repository
from .roles import RoleRepository, get_role_repository, OWNER_ROLE_NAMES
from .tasks import TaskRepository, get_task_repository
from .issues import IssueRepository, get_issue_repository
from .templates import TemplateRepository, get_template_repository

__all__ = [
    "UserRepository",
    "get_user_repository",
    "WorkspaceRepository",
    "get_workspace_repository",
    "RoleRepository",
    "get_role_repository",
    "OWNER_ROLE_NAMES",
    "TaskRepository",
    "get_task_repository",
    "IssueRepository",
    "get_issue_repository",
    "TemplateRepository",
    "get_template_repository",
]
