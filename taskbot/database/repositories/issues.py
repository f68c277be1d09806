"""Issue repository: problems reported by staff (equipment, cleaning, ...)."""

import logging
from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from ..connection import get_database
from ..models import IssueDB
from ..exceptions import DatabaseConstraintError, DatabaseOperationError, EntityNotFoundError
from ...models.task import IssueStatus, IssueView
from ...utils.datetime_utils import get_local_now

logger = logging.getLogger(__name__)


def to_issue_view(issue: IssueDB) -> IssueView:
    return IssueView(
        id=issue.id,
        category=issue.category,
        description=issue.description or "",
        status=IssueStatus(issue.status),
        photo_url=issue.photo_url,
        task_id=issue.task_id,
        reporter_username=issue.reporter.username if issue.reporter else None,
        created_at=issue.created_at or get_local_now(),
    )


class IssueRepository:
    """Repository for issue operations."""

    def __init__(self):
        self.db = get_database()

    async def create(
        self,
        workspace_id: Optional[str],
        reporter_id: Optional[str],
        category: str,
        description: str,
        photo_url: Optional[str] = None,
        task_id: Optional[str] = None,
    ) -> IssueView:
        async with self.db.session() as session:
            try:
                issue = IssueDB(
                    workspace_id=workspace_id,
                    reporter_id=reporter_id,
                    task_id=task_id,
                    category=category,
                    description=description,
                    photo_url=photo_url,
                    status=IssueStatus.NEW.value,
                    created_at=get_local_now(),
                )
                session.add(issue)
                await session.flush()

                result = await session.execute(
                    select(IssueDB)
                    .where(IssueDB.id == issue.id)
                    .execution_options(populate_existing=True)
                )
                issue = result.scalar_one()

                logger.info(f"Issue {issue.id} reported: {category}")
                return to_issue_view(issue)

            except IntegrityError as e:
                logger.error(f"Constraint violation creating issue: {e}")
                raise DatabaseConstraintError("Cannot create issue")

            except Exception as e:
                logger.error(f"Issue creation failed: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to create issue: {e}")

    async def get(self, issue_id: str) -> Optional[IssueView]:
        async with self.db.session() as session:
            result = await session.execute(select(IssueDB).where(IssueDB.id == issue_id))
            issue = result.scalar_one_or_none()
            return to_issue_view(issue) if issue else None

    async def list_for_workspace(self, workspace_id: str, include_resolved: bool = False) -> List[IssueView]:
        """Newest first."""
        query = select(IssueDB).where(IssueDB.workspace_id == workspace_id)
        if not include_resolved:
            query = query.where(IssueDB.status != IssueStatus.RESOLVED.value)

        async with self.db.session() as session:
            result = await session.execute(query.order_by(IssueDB.created_at.desc()))
            return [to_issue_view(issue) for issue in result.scalars().all()]

    async def set_status(self, issue_id: str, status: IssueStatus) -> IssueView:
        async with self.db.session() as session:
            result = await session.execute(select(IssueDB).where(IssueDB.id == issue_id))
            issue = result.scalar_one_or_none()
            if issue is None:
                raise EntityNotFoundError(f"Issue {issue_id} not found")

            issue.status = status.value
            logger.info(f"Issue {issue_id} -> {status.value}")
            return to_issue_view(issue)


_issue_repository: Optional[IssueRepository] = None


def get_issue_repository() -> IssueRepository:
    """Get the issue repository singleton."""
    global _issue_repository
    if _issue_repository is None:
        _issue_repository = IssueRepository()
    return _issue_repository
