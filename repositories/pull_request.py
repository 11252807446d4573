from models.models import PullRequest, PullRequestReviewer, PullRequestStatus, utcnow
from datetime import timedelta
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Iterable, List, Optional
from uuid import UUID

from errors import Internal, PullRequestExists, is_unique_violation


async def pull_request_exists(session: AsyncSession, pr_id: UUID) -> bool:
    result = await session.execute(
        select(PullRequest.id).where(PullRequest.id == pr_id)
    )
    return result.first() is not None


async def get_pull_request(session: AsyncSession, pr_id: UUID, for_update: bool = False) -> Optional[PullRequest]:
    query = select(PullRequest).where(PullRequest.id == pr_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def insert_pull_request(session: AsyncSession, pr_id: UUID, name: str, author_id: UUID) -> PullRequest:
    """Insert an OPEN pull request. The primary key is the final word on duplicates."""
    pr = PullRequest(
        id=pr_id,
        name=name,
        author_id=author_id,
        status=PullRequestStatus.OPEN.value,
        created_at=utcnow(),
        merged_at=None,
    )
    session.add(pr)
    try:
        await session.flush()
    except IntegrityError as e:
        if is_unique_violation(e):
            raise PullRequestExists(op="repo.pr.insert") from e
        raise
    return pr


async def add_reviewers(session: AsyncSession, pr_id: UUID, reviewer_ids: Iterable[UUID]) -> None:
    """Store reviewers in the given order; ``assigned_at`` is staggered so reads keep that order."""
    now = utcnow()
    session.add_all([
        PullRequestReviewer(pr_id=pr_id, reviewer_id=reviewer_id, assigned_at=now + timedelta(microseconds=i))
        for i, reviewer_id in enumerate(reviewer_ids)
    ])
    await session.flush()


async def get_reviewer_ids(session: AsyncSession, pr_id: UUID) -> List[UUID]:
    result = await session.execute(
        select(PullRequestReviewer.reviewer_id)
        .where(PullRequestReviewer.pr_id == pr_id)
        .order_by(PullRequestReviewer.assigned_at, PullRequestReviewer.reviewer_id)
    )
    return [row[0] for row in result.all()]


async def get_assignment(
    session: AsyncSession, pr_id: UUID, reviewer_id: UUID, for_update: bool = False
) -> Optional[PullRequestReviewer]:
    query = select(PullRequestReviewer).where(
        PullRequestReviewer.pr_id == pr_id,
        PullRequestReviewer.reviewer_id == reviewer_id,
    )
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def replace_reviewer(session: AsyncSession, pr_id: UUID, old_reviewer_id: UUID, new_reviewer_id: UUID) -> int:
    """Point the ``(pr_id, old_reviewer_id)`` assignment at ``new_reviewer_id``; returns rows affected.

    The slot keeps its ``assigned_at``, so the new reviewer takes the old one's position.

    A unique violation means a concurrent reassignment already placed the
    new reviewer on this PR; it is reported as a retriable internal error.
    """
    try:
        result = await session.execute(
            update(PullRequestReviewer)
            .where(
                PullRequestReviewer.pr_id == pr_id,
                PullRequestReviewer.reviewer_id == old_reviewer_id,
            )
            .values(reviewer_id=new_reviewer_id)
            .execution_options(synchronize_session=False)
        )
    except IntegrityError as e:
        if is_unique_violation(e):
            raise Internal("concurrent reassignment conflict, retry", op="repo.pr.replace_reviewer") from e
        raise
    return result.rowcount


async def mark_merged(session: AsyncSession, pr: PullRequest) -> PullRequest:
    pr.status = PullRequestStatus.MERGED.value
    pr.merged_at = utcnow()
    await session.flush()
    return pr


async def list_for_reviewer(session: AsyncSession, reviewer_id: UUID) -> List[PullRequest]:
    result = await session.execute(
        select(PullRequest)
        .join(PullRequestReviewer, PullRequest.id == PullRequestReviewer.pr_id)
        .where(PullRequestReviewer.reviewer_id == reviewer_id)
        .order_by(PullRequest.created_at.desc())
    )
    return list(result.scalars().all())
