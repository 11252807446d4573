from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from schemas import (
    TeamRequest, TeamCreateResponse, TeamResponse,
    ErrorResponse
)
from models.database import get_session
from services import teams as team_service


router = APIRouter(prefix="/team", tags=["Teams"])


@router.post("/add", status_code=status.HTTP_201_CREATED,
             summary="Create a team with its members (creates or re-homes users)",
             response_model=TeamCreateResponse,
             responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}})
async def add(request: TeamRequest, session: AsyncSession = Depends(get_session)):
    team = await team_service.add_team(session, request.team_name, request.members)
    return TeamCreateResponse(team=team)


@router.get("/get", status_code=status.HTTP_200_OK,
            summary="Get a team with its members",
            response_model=TeamResponse,
            responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def get(team_name: str = Query(..., min_length=1, description="Unique team name"),
              session: AsyncSession = Depends(get_session)):
    team = await team_service.get_team(session, team_name)
    return TeamResponse(**team)
