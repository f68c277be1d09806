"""
Task repository.

Tasks belong to a workspace, are created by one user and assigned to
another. Deadlines are stored as naive local datetimes.
"""

import logging
from datetime import datetime
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..connection import get_database
from ..models import TaskDB
from ..exceptions import DatabaseConstraintError, DatabaseOperationError, EntityNotFoundError
from ...models.task import ACTIVE_STATUSES, TaskStatus, TaskView
from ...utils.datetime_utils import get_local_now, parse_timestamp

logger = logging.getLogger(__name__)

ACTIVE_VALUES = [status.value for status in ACTIVE_STATUSES]


def to_task_view(task: TaskDB) -> TaskView:
    return TaskView(
        id=task.id,
        title=task.title,
        description=task.description or "",
        status=TaskStatus(task.status),
        deadline=task.deadline,
        created_at=task.created_at or get_local_now(),
        workspace_id=task.workspace_id,
        assignee_id=task.assignee_id,
        assignee_username=task.assignee.username if task.assignee else None,
        assignee_telegram_id=task.assignee.telegram_id if task.assignee else None,
        creator_username=task.creator.username if task.creator else None,
    )


class TaskRepository:
    """Repository for task operations."""

    def __init__(self):
        self.db = get_database()

    async def create(
        self,
        workspace_id: str,
        creator_id: str,
        assignee_id: str,
        title: str,
        description: str,
        deadline: Optional[str],
    ) -> TaskView:
        """Create an assigned task. `deadline` is an ISO timestamp."""
        async with self.db.session() as session:
            try:
                task = TaskDB(
                    workspace_id=workspace_id,
                    creator_id=creator_id,
                    assignee_id=assignee_id,
                    title=title,
                    description=description or "",
                    status=TaskStatus.ASSIGNED.value,
                    deadline=parse_timestamp(deadline),
                    created_at=get_local_now(),
                )
                session.add(task)
                await session.flush()

                # Reload with assignee/creator joined
                result = await session.execute(
                    select(TaskDB)
                    .where(TaskDB.id == task.id)
                    .execution_options(populate_existing=True)
                )
                task = result.scalar_one()

                logger.info(f"Created task {task.id} '{title}' for {assignee_id}")
                return to_task_view(task)

            except IntegrityError as e:
                logger.error(f"Constraint violation creating task '{title}': {e}")
                raise DatabaseConstraintError(f"Cannot create task '{title}'")

            except Exception as e:
                logger.error(f"Task creation failed for '{title}': {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to create task '{title}': {e}")

    async def get(self, task_id: str) -> Optional[TaskView]:
        async with self.db.session() as session:
            result = await session.execute(select(TaskDB).where(TaskDB.id == task_id))
            task = result.scalar_one_or_none()
            return to_task_view(task) if task else None

    async def list_for_assignee(self, user_id: str, include_closed: bool = False) -> List[TaskView]:
        """Tasks assigned to a user, nearest deadline first."""
        query = select(TaskDB).where(TaskDB.assignee_id == user_id)
        if not include_closed:
            query = query.where(TaskDB.status.in_(ACTIVE_VALUES + [TaskStatus.PENDING_REVIEW.value]))

        async with self.db.session() as session:
            result = await session.execute(
                query.order_by(TaskDB.deadline.asc().nulls_last(), TaskDB.created_at)
            )
            return [to_task_view(task) for task in result.unique().scalars().all()]

    async def list_for_workspace(self, workspace_id: str, status_filter: str = "all") -> List[TaskView]:
        """
        Tasks of a workspace.

        Args:
            status_filter: "all", "active", "overdue", or a TaskStatus value
        """
        query = select(TaskDB).where(TaskDB.workspace_id == workspace_id)

        if status_filter == "active":
            query = query.where(TaskDB.status.in_(ACTIVE_VALUES))
        elif status_filter == "overdue":
            query = query.where(
                TaskDB.status.in_(ACTIVE_VALUES),
                TaskDB.deadline.is_not(None),
                TaskDB.deadline < get_local_now(),
            )
        elif status_filter != "all":
            query = query.where(TaskDB.status == TaskStatus(status_filter).value)

        async with self.db.session() as session:
            result = await session.execute(
                query.order_by(TaskDB.deadline.asc().nulls_last(), TaskDB.created_at)
            )
            return [to_task_view(task) for task in result.unique().scalars().all()]

    async def list_active_with_deadline(self) -> List[TaskView]:
        """Open tasks with a deadline across all workspaces (reminder sweep)."""
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskDB).where(
                    TaskDB.status.in_(ACTIVE_VALUES),
                    TaskDB.deadline.is_not(None),
                    TaskDB.assignee_id.is_not(None),
                )
            )
            return [to_task_view(task) for task in result.unique().scalars().all()]

    async def set_status(self, task_id: str, status: TaskStatus) -> TaskView:
        """
        Move a task to `status`.

        Raises:
            EntityNotFoundError: Unknown task id
        """
        async with self.db.session() as session:
            result = await session.execute(select(TaskDB).where(TaskDB.id == task_id))
            task = result.scalar_one_or_none()
            if task is None:
                raise EntityNotFoundError(f"Task {task_id} not found")

            old_status = task.status
            task.status = status.value
            task.updated_at = datetime.now()
            if status == TaskStatus.APPROVED:
                task.completed_at = get_local_now()

            logger.info(f"Task {task_id}: {old_status} -> {status.value}")
            return to_task_view(task)


_task_repository: Optional[TaskRepository] = None


def get_task_repository() -> TaskRepository:
    """Get the task repository singleton."""
    global _task_repository
    if _task_repository is None:
        _task_repository = TaskRepository()
    return _task_repository
