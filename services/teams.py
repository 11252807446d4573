import logging
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from errors import TeamExists, TeamNotFound
from repositories import teams as team_repo
from repositories import users as user_repo
from schemas import TeamMember as TeamMemberSchema


logger = logging.getLogger(__name__)


async def add_team(session: AsyncSession, team_name: str, members: List[TeamMemberSchema]) -> Dict:
    """
    POST /team/add
    Create a team and its members in one transaction.

    Members are upserted by id: an existing user is moved into the new team
    and gets the supplied name and activity flag.
    """
    op = "service.team.add"
    async with session.begin():
        if await team_repo.get_team_by_name(session, team_name) is not None:
            raise TeamExists(op=op)

        team = await team_repo.insert_team(session, team_name)

        for member in members:
            await user_repo.upsert_user(
                session, member.user_id, member.username, member.is_active, team.id
            )

    logger.info("Team %r created with %d members", team_name, len(members))
    return {
        "team_name": team_name,
        "members": [
            {
                "user_id": member.user_id,
                "username": member.username,
                "is_active": member.is_active,
            }
            for member in members
        ],
    }


async def get_team(session: AsyncSession, team_name: str) -> Dict:
    """
    GET /team/get
    Team roster. A team without members is reported the same as a missing one.
    """
    async with session.begin():
        users = await user_repo.list_users_by_team_name(session, team_name)

    if not users:
        raise TeamNotFound(op="service.team.get")

    return {
        "team_name": team_name,
        "members": [
            {
                "user_id": user.id,
                "username": user.name,
                "is_active": user.is_active,
            }
            for user in users
        ],
    }
