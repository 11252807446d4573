from models.models import Team
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from errors import TeamExists, is_unique_violation


async def insert_team(session: AsyncSession, name: str) -> Team:
    """Insert a team row; a taken name surfaces as TeamExists."""
    team = Team(name=name)
    session.add(team)
    try:
        await session.flush()
    except IntegrityError as e:
        if is_unique_violation(e):
            raise TeamExists(op="repo.team.insert") from e
        raise
    return team


async def get_team_by_name(session: AsyncSession, name: str) -> Optional[Team]:
    result = await session.execute(
        select(Team).where(Team.name == name)
    )
    return result.scalar_one_or_none()


async def get_team_name_by_id(session: AsyncSession, team_id: int) -> Optional[str]:
    result = await session.execute(
        select(Team.name).where(Team.id == team_id)
    )
    return result.scalar_one_or_none()
