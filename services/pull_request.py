import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from errors import (
    NoCandidate,
    PullRequestExists,
    PullRequestMerged,
    PullRequestNotFound,
    UserNotAssigned,
    UserNotFound,
)
from models.models import PullRequest
from repositories import pull_request as pr_repo
from repositories import users as user_repo


logger = logging.getLogger(__name__)

MAX_REVIEWERS = 2


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _pr_to_dict(pr: PullRequest, reviewer_ids: List[UUID]) -> Dict:
    return {
        "pull_request_id": pr.id,
        "pull_request_name": pr.name,
        "author_id": pr.author_id,
        "status": pr.status,
        "assigned_reviewers": list(reviewer_ids),
        "created_at": _as_utc(pr.created_at),
        "merged_at": _as_utc(pr.merged_at),
    }


async def create_pull_request(
    session: AsyncSession, pull_request_id: UUID, pull_request_name: str, author_id: UUID
) -> Dict:
    """
    POST /pullRequest/create
    Create a PR and automatically assign up to 2 active reviewers from the author's team.
    Reviewers are returned in selection order.
    """
    op = "service.pr.create"
    async with session.begin():
        if await pr_repo.pull_request_exists(session, pull_request_id):
            raise PullRequestExists(op=op)

        author = await user_repo.get_user(session, author_id)
        if author is None:
            raise UserNotFound(op=op)

        pr = await pr_repo.insert_pull_request(session, pull_request_id, pull_request_name, author.id)

        reviewer_ids = await user_repo.pick_random_active_members(
            session, author.team_id, exclude_ids=[author.id], limit=MAX_REVIEWERS
        )
        await pr_repo.add_reviewers(session, pr.id, reviewer_ids)

    logger.info("PR %s created by %s, reviewers: %s", pr.id, author.id, reviewer_ids)
    return _pr_to_dict(pr, reviewer_ids)


async def merge_pull_request(session: AsyncSession, pull_request_id: UUID) -> Dict:
    """
    POST /pullRequest/merge
    Mark a PR as MERGED. Merging an already merged PR returns it unchanged.
    """
    op = "service.pr.merge"
    async with session.begin():
        pr = await pr_repo.get_pull_request(session, pull_request_id, for_update=True)
        if pr is None:
            raise PullRequestNotFound(op=op)

        if not pr.is_merged:
            await pr_repo.mark_merged(session, pr)
            logger.info("PR %s merged", pr.id)

        reviewer_ids = await pr_repo.get_reviewer_ids(session, pr.id)

    return _pr_to_dict(pr, reviewer_ids)


async def reassign_reviewer(session: AsyncSession, pull_request_id: UUID, old_user_id: UUID) -> Dict:
    """
    POST /pullRequest/reassign
    Replace one reviewer with a random active member of the old reviewer's team
    who is neither the author nor already reviewing the PR.

    The whole exchange runs in one transaction with the PR row and the old
    assignment row locked, so it serializes with merge and with concurrent
    reassigns of the same slot.
    """
    op = "service.pr.reassign"
    async with session.begin():
        pr = await pr_repo.get_pull_request(session, pull_request_id, for_update=True)
        if pr is None:
            raise PullRequestNotFound(op=op)
        if pr.is_merged:
            raise PullRequestMerged(op=op)

        # inactive reviewers can still be reassigned away
        old_reviewer = await user_repo.get_user(session, old_user_id)
        if old_reviewer is None:
            raise UserNotFound(op=op)

        assignment = await pr_repo.get_assignment(session, pr.id, old_reviewer.id, for_update=True)
        if assignment is None:
            raise UserNotAssigned(op=op)

        current_reviewers = await pr_repo.get_reviewer_ids(session, pr.id)
        candidates = await user_repo.pick_random_active_members(
            session,
            old_reviewer.team_id,
            exclude_ids={pr.author_id, *current_reviewers},
            limit=1,
        )
        if not candidates:
            raise NoCandidate(op=op)
        new_reviewer_id = candidates[0]

        updated = await pr_repo.replace_reviewer(session, pr.id, old_reviewer.id, new_reviewer_id)
        if updated != 1:
            raise UserNotAssigned(op=op)
        reviewer_ids = await pr_repo.get_reviewer_ids(session, pr.id)

    logger.info("PR %s reviewer %s replaced by %s", pr.id, old_reviewer.id, new_reviewer_id)
    return {
        "pr": _pr_to_dict(pr, reviewer_ids),
        "replaced_by": new_reviewer_id,
    }


async def get_review(session: AsyncSession, user_id: UUID) -> List[Dict]:
    """
    GET /users/getReview
    PRs where the user is an assigned reviewer, newest first.
    An unknown user simply has nothing to review.
    """
    async with session.begin():
        prs = await pr_repo.list_for_reviewer(session, user_id)

    return [
        {
            "pull_request_id": pr.id,
            "pull_request_name": pr.name,
            "author_id": pr.author_id,
            "status": pr.status,
        }
        for pr in prs
    ]
