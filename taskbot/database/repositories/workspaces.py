"""
Workspace repository.

Workspaces are joined with a 6-character invite code drawn from an
alphabet without look-alike characters (no 0/O, 1/I).
"""

import logging
import secrets
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from config import settings
from ..connection import get_database
from ..models import UserDB, WorkspaceDB
from ..exceptions import (
    DatabaseConstraintError,
    DatabaseOperationError,
    InviteCodeExhaustedError,
)
from ...models.task import WorkspaceView

logger = logging.getLogger(__name__)

INVITE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 5


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def to_workspace_view(workspace: WorkspaceDB, member_count: int = 0) -> WorkspaceView:
    return WorkspaceView(
        id=workspace.id,
        name=workspace.name,
        invite_code=workspace.invite_code,
        timezone=workspace.timezone,
        member_count=member_count,
    )


class WorkspaceRepository:
    """Repository for workspace operations."""

    def __init__(self):
        self.db = get_database()

    async def create(self, name: str, created_by: Optional[str] = None) -> WorkspaceView:
        """
        Create a workspace with a fresh invite code.

        Raises:
            InviteCodeExhaustedError: No unused code after MAX_CODE_ATTEMPTS
        """
        async with self.db.session() as session:
            try:
                for _ in range(MAX_CODE_ATTEMPTS):
                    code = generate_invite_code()
                    taken = await session.execute(
                        select(WorkspaceDB.id).where(WorkspaceDB.invite_code == code)
                    )
                    if taken.scalar_one_or_none() is None:
                        break
                else:
                    raise InviteCodeExhaustedError("Could not generate a unique invite code")

                workspace = WorkspaceDB(
                    name=name,
                    invite_code=code,
                    timezone=settings.timezone,
                    created_by=created_by,
                )
                session.add(workspace)
                await session.flush()

                logger.info(f"Created workspace {workspace.id} '{name}' ({code})")
                return to_workspace_view(workspace)

            except InviteCodeExhaustedError:
                raise

            except IntegrityError as e:
                logger.error(f"Constraint violation creating workspace {name}: {e}")
                raise DatabaseConstraintError(f"Cannot create workspace {name}")

            except Exception as e:
                logger.error(f"Workspace creation failed for {name}: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to create workspace {name}: {e}")

    async def _with_members(self, session, workspace: Optional[WorkspaceDB]) -> Optional[WorkspaceView]:
        if workspace is None:
            return None
        count = await session.execute(
            select(func.count(UserDB.id)).where(UserDB.workspace_id == workspace.id)
        )
        return to_workspace_view(workspace, count.scalar() or 0)

    async def get_by_id(self, workspace_id: str) -> Optional[WorkspaceView]:
        async with self.db.session() as session:
            result = await session.execute(
                select(WorkspaceDB).where(WorkspaceDB.id == workspace_id)
            )
            return await self._with_members(session, result.scalar_one_or_none())

    async def get_by_invite_code(self, code: str) -> Optional[WorkspaceView]:
        async with self.db.session() as session:
            result = await session.execute(
                select(WorkspaceDB).where(WorkspaceDB.invite_code == code.strip().upper())
            )
            return await self._with_members(session, result.scalar_one_or_none())


_workspace_repository: Optional[WorkspaceRepository] = None


def get_workspace_repository() -> WorkspaceRepository:
    """Get the workspace repository singleton."""
    global _workspace_repository
    if _workspace_repository is None:
        _workspace_repository = WorkspaceRepository()
    return _workspace_repository
