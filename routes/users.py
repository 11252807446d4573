from uuid import UUID

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from schemas import (
    SetIsActiveRequest, UserUpdateResponse, GetReviewResponse,
    ErrorResponse
)
from models.database import get_session
from services import pull_request as pr_service
from services import users as user_service


router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/setIsActive", status_code=status.HTTP_200_OK,
             summary="Set the user's active flag",
             response_model=UserUpdateResponse,
             responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def setIsActive(request: SetIsActiveRequest, session: AsyncSession = Depends(get_session)):
    user = await user_service.set_is_active(session, request.user_id, request.is_active)
    return UserUpdateResponse(user=user)


@router.get("/getReview", status_code=status.HTTP_200_OK,
            summary="List PRs where the user is an assigned reviewer",
            response_model=GetReviewResponse,
            responses={400: {"model": ErrorResponse}})
async def getReview(user_id: UUID = Query(..., description="User identifier"),
                    session: AsyncSession = Depends(get_session)):
    pull_requests = await pr_service.get_review(session, user_id)
    return GetReviewResponse(
        user_id=user_id,
        pull_requests=pull_requests
    )
