"""
PostgreSQL storage for workspaces, users, roles, tasks, issues and templates.
"""

from .connection import (
    get_database,
    Database,
    init_database,
    close_database,
)
from .models import (
    Base,
    WorkspaceDB,
    UserDB,
    RoleDB,
    UserRoleDB,
    TaskDB,
    IssueDB,
    TaskTemplateDB,
    ChecklistTemplateDB,
    ChecklistItemDB,
)
from .exceptions import (
    DatabaseError,
    DatabaseConnectionError,
    DatabaseConstraintError,
    DatabaseOperationError,
    EntityNotFoundError,
    InviteCodeExhaustedError,
)

__all__ = [
    "get_database",
    "Database",
    "init_database",
    "close_database",
    "Base",
    "WorkspaceDB",
    "UserDB",
    "RoleDB",
    "UserRoleDB",
    "TaskDB",
    "IssueDB",
    "TaskTemplateDB",
    "ChecklistTemplateDB",
    "ChecklistItemDB",
    "DatabaseError",
    "DatabaseConnectionError",
    "DatabaseConstraintError",
    "DatabaseOperationError",
    "EntityNotFoundError",
    "InviteCodeExhaustedError",
]
