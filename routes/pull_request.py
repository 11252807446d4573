from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from schemas import (
    PullRequestCreateRequest, PullRequestCreateResponse,
    PullRequestMergeRequest, PullRequestMergeResponse,
    PullRequestReassignRequest, PullRequestReassignResponse,
    ErrorResponse
)
from models.database import get_session
from services import pull_request as pr_service


router = APIRouter(prefix="/pullRequest", tags=["PullRequests"])


@router.post("/create", status_code=status.HTTP_201_CREATED,
             summary="Create a PR and auto-assign up to 2 reviewers from the author's team",
             response_model=PullRequestCreateResponse,
             responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse},
                        409: {"model": ErrorResponse}})
async def create(request: PullRequestCreateRequest, session: AsyncSession = Depends(get_session)):
    pr = await pr_service.create_pull_request(
        session,
        request.pull_request_id,
        request.pull_request_name,
        request.author_id
    )
    return PullRequestCreateResponse(pr=pr)


@router.post("/merge", status_code=status.HTTP_200_OK,
             summary="Mark a PR as MERGED (idempotent)",
             response_model=PullRequestMergeResponse,
             responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})
async def merge(request: PullRequestMergeRequest, session: AsyncSession = Depends(get_session)):
    pr = await pr_service.merge_pull_request(session, request.pull_request_id)
    return PullRequestMergeResponse(pr=pr)


@router.post("/reassign", status_code=status.HTTP_200_OK,
             summary="Replace a reviewer with another active member of their team",
             response_model=PullRequestReassignResponse,
             responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse},
                        409: {"model": ErrorResponse}})
async def reassign(request: PullRequestReassignRequest, session: AsyncSession = Depends(get_session)):
    result = await pr_service.reassign_reviewer(
        session,
        request.pull_request_id,
        request.old_user_id
    )
    return PullRequestReassignResponse(
        pr=result["pr"],
        replaced_by=result["replaced_by"]
    )
