"""Initial schema

Revision ID: 001_initial
Revises: 
Create Date: 2025-11-10 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Teams table
    op.create_table(
        'teams',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.CheckConstraint("name <> ''", name='ck_teams_name_not_empty'),
    )
    op.create_index('ix_teams_name', 'teams', ['name'], unique=True)

    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('team_id', sa.Integer, sa.ForeignKey('teams.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("name <> ''", name='ck_users_name_not_empty'),
    )
    op.create_index('ix_users_team_active', 'users', ['team_id', 'is_active'])

    # Pull requests table
    op.create_table(
        'pull_requests',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('author_id', sa.Uuid, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('status', sa.String(10), nullable=False, server_default='OPEN'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('merged_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("name <> ''", name='ck_pull_requests_name_not_empty'),
        sa.CheckConstraint("status IN ('OPEN', 'MERGED')", name='ck_pull_requests_status'),
        sa.CheckConstraint("(status = 'MERGED') = (merged_at IS NOT NULL)", name='ck_pull_requests_merged_at'),
    )
    op.create_index('ix_pull_requests_author_id', 'pull_requests', ['author_id'])

    # Reviewer assignments
    op.create_table(
        'pr_reviewers',
        sa.Column('pr_id', sa.Uuid, sa.ForeignKey('pull_requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reviewer_id', sa.Uuid, sa.ForeignKey('users.id'), nullable=False),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('pr_id', 'reviewer_id'),
    )
    op.create_index('ix_pr_reviewers_reviewer_id', 'pr_reviewers', ['reviewer_id'])


def downgrade() -> None:
    op.drop_table('pr_reviewers')
    op.drop_table('pull_requests')
    op.drop_table('users')
    op.drop_table('teams')
