"""Identity store: lookups and updates of user rows.

`UserStore` wraps the database interactions the session manager needs. Each
call opens its own session and commits before returning, so every read sees
the latest committed state and nothing is cached between calls.
"""

from typing import Any

from core.logging import logger
from db.session import AsyncSessionLocal
from models.users import User
from schemas.users import PublicUser, UserInDB
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Columns readable by callers that must never see credentials.
PUBLIC_COLUMNS = (
    User.id,
    User.username,
    User.email,
    User.full_name,
    User.avatar,
    User.cover_image,
    User.created_at,
    User.updated_at,
)


class UserStore:
    """Read and write `User` rows.

    Args:
        session_factory: Factory producing async sessions; defaults to the
            application's `AsyncSessionLocal`.
    """

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal
    ) -> None:
        self._session_factory = session_factory

    async def find_one(
        self, username: str | None = None, email: str | None = None
    ) -> UserInDB | None:
        """Return the user matching ``username`` OR ``email``, if any.

        The username comparison is case-insensitive: stored usernames are
        lowercase and the argument is lowercased before the query.
        """
        conditions = []
        if username:
            conditions.append(User.username == username.strip().lower())
        if email:
            conditions.append(User.email == email.strip())
        if not conditions:
            return None

        async with self._session_factory() as db:
            result = await db.execute(select(User).filter(or_(*conditions)))
            user = result.scalars().first()
            if user:
                logger.debug("Loaded user from DB username={} id={}", user.username, user.id)
                return UserInDB.model_validate(user)
            return None

    async def find_by_id(self, user_id: str) -> UserInDB | None:
        async with self._session_factory() as db:
            user = await db.get(User, user_id)
            return UserInDB.model_validate(user) if user else None

    async def find_public_by_id(self, user_id: str) -> PublicUser | None:
        """Return the user without `password_hash` and `refresh_token`.

        Only the public columns are selected, so the credential fields are
        never loaded from the database.
        """
        async with self._session_factory() as db:
            result = await db.execute(select(*PUBLIC_COLUMNS).filter(User.id == user_id))
            row = result.first()
            return PublicUser.model_validate(dict(row._mapping)) if row else None

    async def create(self, **fields: Any) -> UserInDB:
        async with self._session_factory() as db:
            user = User(**fields)
            db.add(user)
            await db.commit()
            await db.refresh(user)
            logger.info("Created user username={} id={}", user.username, user.id)
            return UserInDB.model_validate(user)

    async def find_by_id_and_update(self, user_id: str, **fields: Any) -> UserInDB | None:
        """Apply ``fields`` to the user row and return the updated user.

        Returns:
            UserInDB | None: The updated user, or None if no row has that id.
        """
        async with self._session_factory() as db:
            user = await db.get(User, user_id)
            if user is None:
                return None
            for key, value in fields.items():
                setattr(user, key, value)
            await db.commit()
            await db.refresh(user)
            return UserInDB.model_validate(user)

    async def swap_refresh_token(self, user_id: str, expected: str, new: str) -> bool:
        """Replace the stored refresh token only if it still equals ``expected``.

        Returns:
            bool: True if the row was updated, False if the stored token had
                already changed (or the user no longer exists).
        """
        async with self._session_factory() as db:
            result = await db.execute(
                update(User)
                .where(User.id == user_id, User.refresh_token == expected)
                .values(refresh_token=new)
            )
            await db.commit()
            return result.rowcount == 1
