"""
SQLAlchemy models for PostgreSQL database.

Schema includes:
- Users (Telegram identities) bound to one workspace
- Workspaces with unique invite codes
- Roles and user-role links
- Tasks with assignee/creator
- Issues reported by staff
- Task templates and checklist templates with items
"""

from datetime import datetime
from typing import Optional, List
import uuid

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column
from sqlalchemy.sql import func


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ==================== WORKSPACES ====================

class WorkspaceDB(Base):
    """Organization boundary grouping users, tasks and roles."""
    __tablename__ = "workspaces"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(80), nullable=False)
    invite_code: Mapped[str] = mapped_column(String(6), nullable=False, unique=True)
    timezone: Mapped[str] = mapped_column(String(64), default="Asia/Irkutsk")
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    members: Mapped[List["UserDB"]] = relationship("UserDB", back_populates="workspace")


# ==================== USERS & ROLES ====================

class UserDB(Base):
    """A Telegram user known to the bot."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    telegram_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    workspace_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("workspaces.id", ondelete="SET NULL"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    workspace: Mapped[Optional["WorkspaceDB"]] = relationship("WorkspaceDB", back_populates="members")
    roles: Mapped[List["UserRoleDB"]] = relationship("UserRoleDB", back_populates="user", lazy="selectin")

    __table_args__ = (
        Index("idx_users_username", "username"),
        Index("idx_users_workspace", "workspace_id"),
    )


class RoleDB(Base):
    """Named access level (Владелец, Администратор, Сотрудник)."""
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    access_level: Mapped[int] = mapped_column(Integer, default=1)


class UserRoleDB(Base):
    """Role held by a user inside a workspace."""
    __tablename__ = "user_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role_id: Mapped[int] = mapped_column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)
    workspace_id: Mapped[str] = mapped_column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)

    user: Mapped["UserDB"] = relationship("UserDB", back_populates="roles")
    role: Mapped["RoleDB"] = relationship("RoleDB", lazy="joined")

    __table_args__ = (
        UniqueConstraint("user_id", "workspace_id", name="uq_user_role_workspace"),
    )


# ==================== TASKS ====================

class TaskDB(Base):
    """Task assigned to a workspace member."""
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    workspace_id: Mapped[str] = mapped_column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(50), default="assigned")
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)  # naive local

    creator_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assignee_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    creator: Mapped[Optional["UserDB"]] = relationship("UserDB", foreign_keys=[creator_id], lazy="joined")
    assignee: Mapped[Optional["UserDB"]] = relationship("UserDB", foreign_keys=[assignee_id], lazy="joined")

    __table_args__ = (
        Index("idx_tasks_workspace", "workspace_id"),
        Index("idx_tasks_assignee", "assignee_id"),
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_deadline", "deadline"),
    )


# ==================== ISSUES ====================

class IssueDB(Base):
    """Operational problem reported by staff."""
    __tablename__ = "issues"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    workspace_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=True)
    reporter_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    task_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    photo_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="new")

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    reporter: Mapped[Optional["UserDB"]] = relationship("UserDB", lazy="joined")

    __table_args__ = (
        Index("idx_issues_workspace_status", "workspace_id", "status"),
    )


# ==================== TEMPLATES ====================

class TaskTemplateDB(Base):
    """Reusable task blueprint."""
    __tablename__ = "task_templates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    workspace_id: Mapped[str] = mapped_column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    default_deadline_hours: Mapped[int] = mapped_column(Integer, default=24)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


class ChecklistTemplateDB(Base):
    """Opening/closing/daily checklist."""
    __tablename__ = "checklist_templates"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    workspace_id: Mapped[str] = mapped_column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    items: Mapped[List["ChecklistItemDB"]] = relationship(
        "ChecklistItemDB",
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="ChecklistItemDB.position",
        lazy="selectin",
    )


class ChecklistItemDB(Base):
    """One line of a checklist."""
    __tablename__ = "checklist_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    template_id: Mapped[str] = mapped_column(String(36), ForeignKey("checklist_templates.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    reward: Mapped[int] = mapped_column(Integer, default=10)
    requires_photo: Mapped[bool] = mapped_column(Boolean, default=False)

    template: Mapped["ChecklistTemplateDB"] = relationship("ChecklistTemplateDB", back_populates="items")
