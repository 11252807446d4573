import logging
from typing import Dict
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from errors import UserNotFound
from repositories import teams as team_repo
from repositories import users as user_repo


logger = logging.getLogger(__name__)


async def set_is_active(session: AsyncSession, user_id: UUID, is_active: bool) -> Dict:
    """
    POST /users/setIsActive
    Update the user's activity flag. Existing review assignments are left alone.
    Returns the user together with its team name.
    """
    op = "service.user.set_is_active"
    async with session.begin():
        user = await user_repo.update_is_active(session, user_id, is_active)
        if user is None:
            raise UserNotFound(op=op)

        team_name = await team_repo.get_team_name_by_id(session, user.team_id)

    logger.info("User %s is_active=%s", user.id, user.is_active)
    return {
        "user_id": user.id,
        "username": user.name,
        "team_name": team_name or "",
        "is_active": user.is_active,
    }
