from pydantic import BaseModel, Field, StrictBool
from typing import List, Literal, Optional
from datetime import datetime
from uuid import UUID


PullRequestStatusLiteral = Literal["OPEN", "MERGED"]


class ErrorDetail(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail


class TeamMember(BaseModel):
    user_id: UUID
    username: str = Field(..., min_length=1)
    is_active: StrictBool


class TeamRequest(BaseModel):
    team_name: str = Field(..., min_length=1)
    members: List[TeamMember]


class TeamResponse(BaseModel):
    team_name: str
    members: List[TeamMember]


class TeamCreateResponse(BaseModel):
    team: TeamResponse


class UserResponse(BaseModel):
    user_id: UUID
    username: str
    team_name: str
    is_active: bool


class UserUpdateResponse(BaseModel):
    user: UserResponse


class SetIsActiveRequest(BaseModel):
    user_id: UUID
    # required and non-null: "not supplied" must differ from an explicit false
    is_active: StrictBool


class PullRequestShort(BaseModel):
    pull_request_id: UUID
    pull_request_name: str
    author_id: UUID
    status: PullRequestStatusLiteral


class PullRequestResponse(BaseModel):
    pull_request_id: UUID
    pull_request_name: str
    author_id: UUID
    status: PullRequestStatusLiteral
    assigned_reviewers: List[UUID]
    created_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None


class PullRequestCreateRequest(BaseModel):
    pull_request_id: UUID
    pull_request_name: str = Field(..., min_length=1)
    author_id: UUID


class PullRequestCreateResponse(BaseModel):
    pr: PullRequestResponse


class PullRequestMergeRequest(BaseModel):
    pull_request_id: UUID


class PullRequestMergeResponse(BaseModel):
    pr: PullRequestResponse


class PullRequestReassignRequest(BaseModel):
    pull_request_id: UUID
    old_user_id: UUID


class PullRequestReassignResponse(BaseModel):
    pr: PullRequestResponse
    replaced_by: UUID


class GetReviewResponse(BaseModel):
    user_id: UUID
    pull_requests: List[PullRequestShort]
