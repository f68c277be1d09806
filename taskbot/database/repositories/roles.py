"""
Role repository.

Roles are global names with an access level; a user holds one role per
workspace.
"""

import logging
from typing import Optional, List, Sequence

from sqlalchemy import select, func

from ..connection import get_database
from ..models import RoleDB, UserRoleDB
from ..exceptions import DatabaseOperationError

logger = logging.getLogger(__name__)

OWNER_ROLE_NAMES = ("Владелец", "Owner")

DEFAULT_ROLES = [
    ("Владелец", 100),
    ("Администратор", 50),
    ("Сотрудник", 10),
]


class RoleRepository:
    """Repository for roles and user-role links."""

    def __init__(self):
        self.db = get_database()

    async def ensure_default_roles(self) -> int:
        """Seed the default roles into an empty table. Returns how many were added."""
        async with self.db.session() as session:
            existing = await session.execute(select(func.count(RoleDB.id)))
            if existing.scalar():
                return 0
            for name, level in DEFAULT_ROLES:
                session.add(RoleDB(name=name, access_level=level))
            logger.info(f"Seeded {len(DEFAULT_ROLES)} default roles")
            return len(DEFAULT_ROLES)

    async def list_roles(self) -> List[RoleDB]:
        """All roles, highest access level first."""
        async with self.db.session() as session:
            result = await session.execute(
                select(RoleDB).order_by(RoleDB.access_level.desc())
            )
            return list(result.scalars().all())

    async def get_by_names(self, names: Sequence[str]) -> Optional[RoleDB]:
        """First role whose name is in `names`."""
        async with self.db.session() as session:
            result = await session.execute(
                select(RoleDB).where(RoleDB.name.in_(list(names))).limit(1)
            )
            return result.scalar_one_or_none()

    async def assign(self, user_id: str, role_id: int, workspace_id: str) -> UserRoleDB:
        """Give the user this role in the workspace, replacing the previous one."""
        async with self.db.session() as session:
            try:
                result = await session.execute(
                    select(UserRoleDB).where(
                        UserRoleDB.user_id == user_id,
                        UserRoleDB.workspace_id == workspace_id,
                    )
                )
                link = result.scalar_one_or_none()
                if link is None:
                    link = UserRoleDB(user_id=user_id, role_id=role_id, workspace_id=workspace_id)
                    session.add(link)
                else:
                    link.role_id = role_id

                await session.flush()
                logger.info(f"User {user_id} now has role {role_id} in {workspace_id}")
                return link

            except Exception as e:
                logger.error(f"Role assignment failed for {user_id}: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to assign role to {user_id}: {e}")


_role_repository: Optional[RoleRepository] = None


def get_role_repository() -> RoleRepository:
    """Get the role repository singleton."""
    global _role_repository
    if _role_repository is None:
        _role_repository = RoleRepository()
    return _role_repository
