from models.models import Team, User, utcnow
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Iterable, List, Optional
from uuid import UUID


def _insert_for(session: AsyncSession):
    """Dialect-specific INSERT construct (both support ON CONFLICT)."""
    if session.bind.dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def upsert_user(
    session: AsyncSession, user_id: UUID, name: str, is_active: bool, team_id: int
) -> None:
    """Insert a user or, if the id is taken, move it to ``team_id`` and overwrite name/activity."""
    insert = _insert_for(session)
    now = utcnow()
    stmt = insert(User).values(
        id=user_id,
        name=name,
        is_active=is_active,
        team_id=team_id,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[User.id],
        set_={
            "name": stmt.excluded.name,
            "is_active": stmt.excluded.is_active,
            "team_id": stmt.excluded.team_id,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    await session.execute(stmt)


async def get_user(session: AsyncSession, user_id: UUID, for_update: bool = False) -> Optional[User]:
    query = select(User).where(User.id == user_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def list_users_by_team_name(session: AsyncSession, team_name: str) -> List[User]:
    result = await session.execute(
        select(User)
        .join(Team, Team.id == User.team_id)
        .where(Team.name == team_name)
        .order_by(User.created_at, User.id)
    )
    return list(result.scalars().all())


async def update_is_active(session: AsyncSession, user_id: UUID, is_active: bool) -> Optional[User]:
    """Set the activity flag on one row and bump ``updated_at``. None if the user is missing."""
    user = await get_user(session, user_id, for_update=True)
    if user is None:
        return None
    user.is_active = is_active
    user.updated_at = utcnow()
    await session.flush()
    return user


async def pick_random_active_members(
    session: AsyncSession, team_id: int, exclude_ids: Iterable[UUID], limit: int
) -> List[UUID]:
    """Up to ``limit`` active members of the team, in random order, skipping ``exclude_ids``."""
    exclude_ids = list(exclude_ids)
    query = select(User.id).where(
        User.team_id == team_id,
        User.is_active.is_(True),
    )
    if exclude_ids:
        query = query.where(User.id.notin_(exclude_ids))
    result = await session.execute(
        query.order_by(func.random()).limit(limit)
    )
    return [row[0] for row in result.all()]
