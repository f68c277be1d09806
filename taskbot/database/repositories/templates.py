"""
Repository for task templates and checklists.

A checklist and all of its items are written in one session, so either
the whole template is stored or nothing is.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError

from ..connection import get_database
from ..models import ChecklistItemDB, ChecklistTemplateDB, TaskTemplateDB
from ..exceptions import DatabaseConstraintError, DatabaseOperationError
from ...models.task import TaskTemplateView

logger = logging.getLogger(__name__)


def to_template_view(template: TaskTemplateDB) -> TaskTemplateView:
    return TaskTemplateView(
        id=template.id,
        name=template.name,
        title=template.title,
        description=template.description or "",
        default_deadline_hours=template.default_deadline_hours or 24,
    )


class TemplateRepository:
    """Repository for task templates and checklists."""

    def __init__(self):
        self.db = get_database()

    async def create_task_template(
        self,
        workspace_id: str,
        name: str,
        title: str,
        description: str = "",
        default_deadline_hours: int = 24,
        created_by: Optional[str] = None,
    ) -> TaskTemplateView:
        async with self.db.session() as session:
            try:
                template = TaskTemplateDB(
                    workspace_id=workspace_id,
                    name=name,
                    title=title,
                    description=description,
                    default_deadline_hours=default_deadline_hours,
                    created_by=created_by,
                )
                session.add(template)
                await session.flush()

                logger.info(f"Created task template {template.id}: {name}")
                return to_template_view(template)

            except IntegrityError as e:
                logger.error(f"Constraint violation creating template {name}: {e}")
                raise DatabaseConstraintError(f"Cannot create template {name}")

            except Exception as e:
                logger.error(f"Template creation failed for {name}: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to create template {name}: {e}")

    async def list_task_templates(self, workspace_id: str) -> List[TaskTemplateView]:
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskTemplateDB)
                .where(TaskTemplateDB.workspace_id == workspace_id)
                .order_by(TaskTemplateDB.name)
            )
            return [to_template_view(t) for t in result.scalars().all()]

    async def get_task_template(self, template_id: str) -> Optional[TaskTemplateView]:
        async with self.db.session() as session:
            result = await session.execute(
                select(TaskTemplateDB).where(TaskTemplateDB.id == template_id)
            )
            template = result.scalar_one_or_none()
            return to_template_view(template) if template else None

    async def delete_task_template(self, template_id: str) -> bool:
        async with self.db.session() as session:
            result = await session.execute(
                delete(TaskTemplateDB).where(TaskTemplateDB.id == template_id)
            )
            deleted = result.rowcount > 0
            if deleted:
                logger.info(f"Deleted task template {template_id}")
            return deleted

    async def create_checklist(
        self,
        workspace_id: str,
        name: str,
        checklist_type: str,
        items: List[Dict[str, Any]],
        created_by: Optional[str] = None,
    ) -> str:
        """Store a checklist with its items. Returns the checklist id."""
        async with self.db.session() as session:
            try:
                checklist = ChecklistTemplateDB(
                    workspace_id=workspace_id,
                    name=name,
                    type=checklist_type,
                    created_by=created_by,
                    items=[
                        ChecklistItemDB(
                            position=position,
                            text=item["text"],
                            reward=item.get("reward", 10),
                            requires_photo=item.get("requires_photo", False),
                        )
                        for position, item in enumerate(items)
                    ],
                )
                session.add(checklist)
                await session.flush()

                logger.info(f"Created checklist {checklist.id} '{name}' with {len(items)} items")
                return checklist.id

            except IntegrityError as e:
                logger.error(f"Constraint violation creating checklist {name}: {e}")
                raise DatabaseConstraintError(f"Cannot create checklist {name}")

            except Exception as e:
                logger.error(f"Checklist creation failed for {name}: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to create checklist {name}: {e}")


_template_repository: Optional[TemplateRepository] = None


def get_template_repository() -> TemplateRepository:
    """Get the template repository singleton."""
    global _template_repository
    if _template_repository is None:
        _template_repository = TemplateRepository()
    return _template_repository
