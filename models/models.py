from sqlalchemy.orm import declarative_base
from sqlalchemy import *
from datetime import datetime, timezone
from enum import Enum


Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PullRequestStatus(str, Enum):
    OPEN = "OPEN"
    MERGED = "MERGED"


class Team(Base):
    __tablename__ = 'teams'

    id = Column(Integer(), primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("name <> ''", name='ck_teams_name_not_empty'),
    )


class User(Base):
    __tablename__ = 'users'

    id = Column(Uuid(), primary_key=True)
    team_id = Column(Integer(), ForeignKey('teams.id'), nullable=False)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean(), nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint("name <> ''", name='ck_users_name_not_empty'),
        Index('ix_users_team_active', 'team_id', 'is_active'),
    )


class PullRequest(Base):
    __tablename__ = 'pull_requests'

    id = Column(Uuid(), primary_key=True)
    author_id = Column(Uuid(), ForeignKey('users.id'), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    status = Column(String(10), nullable=False, default=PullRequestStatus.OPEN.value,
                    server_default=PullRequestStatus.OPEN.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    merged_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("name <> ''", name='ck_pull_requests_name_not_empty'),
        CheckConstraint("status IN ('OPEN', 'MERGED')", name='ck_pull_requests_status'),
        CheckConstraint("(status = 'MERGED') = (merged_at IS NOT NULL)", name='ck_pull_requests_merged_at'),
    )

    @property
    def is_merged(self) -> bool:
        return self.status == PullRequestStatus.MERGED.value


class PullRequestReviewer(Base):
    __tablename__ = 'pr_reviewers'

    pr_id = Column(Uuid(), ForeignKey('pull_requests.id', ondelete='CASCADE'), nullable=False)
    reviewer_id = Column(Uuid(), ForeignKey('users.id'), nullable=False, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        PrimaryKeyConstraint('pr_id', 'reviewer_id'),
    )
