"""
User repository.

Telegram identities, their workspace binding and display names.
"""

import logging
from typing import Optional, List

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError

from ..connection import get_database
from ..models import UserDB
from ..exceptions import DatabaseConstraintError, DatabaseOperationError
from ...models.task import UserView

logger = logging.getLogger(__name__)


def to_user_view(user: UserDB) -> UserView:
    role_name = None
    for link in user.roles or []:
        if link.workspace_id == user.workspace_id and link.role is not None:
            role_name = link.role.name
            break
    return UserView(
        id=user.id,
        telegram_id=user.telegram_id,
        username=user.username,
        first_name=user.first_name,
        workspace_id=user.workspace_id,
        role_name=role_name,
    )


class UserRepository:
    """Repository for user operations."""

    def __init__(self):
        self.db = get_database()

    async def upsert_by_telegram(
        self,
        telegram_id: int,
        username: Optional[str] = None,
        first_name: Optional[str] = None,
    ) -> UserView:
        """
        Create the user on first contact.

        An existing username is kept: it may be a name the user chose
        during onboarding. It is only filled in when still empty.
        """
        async with self.db.session() as session:
            try:
                result = await session.execute(
                    select(UserDB).where(UserDB.telegram_id == telegram_id)
                )
                user = result.scalar_one_or_none()

                if user is None:
                    user = UserDB(telegram_id=telegram_id, username=username, first_name=first_name)
                    session.add(user)
                    logger.info(f"Registered user {telegram_id} (@{username})")
                else:
                    if username and not user.username:
                        user.username = username
                    if first_name:
                        user.first_name = first_name

                await session.flush()
                await session.refresh(user, ["roles"])
                return to_user_view(user)

            except IntegrityError as e:
                logger.error(f"Constraint violation upserting user {telegram_id}: {e}")
                raise DatabaseConstraintError(f"Cannot upsert user {telegram_id}")

            except Exception as e:
                logger.error(f"User upsert failed for {telegram_id}: {e}", exc_info=True)
                raise DatabaseOperationError(f"Failed to upsert user {telegram_id}: {e}")

    async def get_by_id(self, user_id: str) -> Optional[UserView]:
        async with self.db.session() as session:
            result = await session.execute(select(UserDB).where(UserDB.id == user_id))
            user = result.scalar_one_or_none()
            return to_user_view(user) if user else None

    async def get_by_telegram_id(self, telegram_id: int) -> Optional[UserView]:
        async with self.db.session() as session:
            result = await session.execute(
                select(UserDB).where(UserDB.telegram_id == telegram_id)
            )
            user = result.scalar_one_or_none()
            return to_user_view(user) if user else None

    async def get_by_username(self, username: str, workspace_id: Optional[str] = None) -> Optional[UserView]:
        """Case-insensitive username lookup, optionally within one workspace."""
        query = select(UserDB).where(func.lower(UserDB.username) == username.lstrip("@").lower())
        if workspace_id:
            query = query.where(UserDB.workspace_id == workspace_id)

        async with self.db.session() as session:
            result = await session.execute(query.limit(1))
            user = result.scalar_one_or_none()
            return to_user_view(user) if user else None

    async def set_workspace(self, user_id: str, workspace_id: str) -> bool:
        async with self.db.session() as session:
            result = await session.execute(
                update(UserDB).where(UserDB.id == user_id).values(workspace_id=workspace_id)
            )
            return result.rowcount > 0

    async def update_username(self, telegram_id: int, username: str) -> bool:
        async with self.db.session() as session:
            result = await session.execute(
                update(UserDB).where(UserDB.telegram_id == telegram_id).values(username=username)
            )
            return result.rowcount > 0

    async def list_by_workspace(self, workspace_id: str) -> List[UserView]:
        async with self.db.session() as session:
            result = await session.execute(
                select(UserDB)
                .where(UserDB.workspace_id == workspace_id)
                .order_by(UserDB.username)
            )
            return [to_user_view(user) for user in result.scalars().all()]

    async def count_by_workspace(self, workspace_id: str) -> int:
        async with self.db.session() as session:
            result = await session.execute(
                select(func.count(UserDB.id)).where(UserDB.workspace_id == workspace_id)
            )
            return result.scalar() or 0


_user_repository: Optional[UserRepository] = None


def get_user_repository() -> UserRepository:
    """Get the user repository singleton."""
    global _user_repository
    if _user_repository is None:
        _user_repository = UserRepository()
    return _user_repository
