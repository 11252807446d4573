"""
Domain errors shared by services and the HTTP edge.

Each error knows the wire code and HTTP status it maps to, so the edge
does a single lookup instead of matching strings.
"""

from typing import Optional

from fastapi import status
from sqlalchemy.exc import IntegrityError


class ServiceError(Exception):
    code = "INTERNAL"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "internal server error"

    def __init__(self, message: Optional[str] = None, op: Optional[str] = None):
        self.message = message or self.message
        self.op = op
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.op:
            return f"{self.op}: {self.message}"
        return self.message


class TeamExists(ServiceError):
    code = "TEAM_EXISTS"
    status_code = status.HTTP_409_CONFLICT
    message = "team_name already exists"


class TeamNotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "team not found"


class UserNotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "user not found"


class PullRequestExists(ServiceError):
    code = "PR_EXISTS"
    status_code = status.HTTP_409_CONFLICT
    message = "PR id already exists"


class PullRequestNotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "PR not found"


class PullRequestMerged(ServiceError):
    code = "PR_MERGED"
    status_code = status.HTTP_409_CONFLICT
    message = "cannot reassign on merged PR"


class UserNotAssigned(ServiceError):
    code = "NOT_ASSIGNED"
    status_code = status.HTTP_409_CONFLICT
    message = "reviewer is not assigned to this PR"


class NoCandidate(ServiceError):
    code = "NO_CANDIDATE"
    status_code = status.HTTP_409_CONFLICT
    message = "no active replacement candidate in team"


class ValidationFailed(ServiceError):
    code = "BAD_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "invalid request body"


class Internal(ServiceError):
    pass


class RequestTimeout(ServiceError):
    code = "TIMEOUT"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    message = "request deadline exceeded"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the store rejected a write because of a unique/PK constraint."""
    orig = exc.orig
    # asyncpg (through the SQLAlchemy adapter) exposes the SQLSTATE
    if getattr(orig, "sqlstate", None) == "23505":
        return True
    cause = getattr(orig, "__cause__", None)
    if getattr(cause, "sqlstate", None) == "23505":
        return True
    # sqlite
    return "UNIQUE constraint failed" in str(orig)
