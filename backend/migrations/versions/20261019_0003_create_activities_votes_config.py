from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261019_0003"
down_revision = "20261019_0002"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "activities",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("enrollment_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("milestone_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("milestones.id", ondelete="CASCADE"), nullable=False),
        sa.Column("commit_hash", sa.String(length=64), nullable=True),
        sa.Column("commit_message", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index("ix_activities_enrollment_id", "activities", ["enrollment_id"])
    op.create_index("ix_activities_milestone_id", "activities", ["milestone_id"])
    op.create_index("ix_activities_commit_hash", "activities", ["commit_hash"])
    # Target of INSERT ... ON CONFLICT DO NOTHING in the commit processor
    op.create_unique_constraint("uq_activity_once_per_milestone", "activities", ["enrollment_id", "milestone_id"])

    op.create_table(
        "votes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("voter_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("candidate_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_votes_voter_id", "votes", ["voter_id"], unique=True)
    op.create_index("ix_votes_candidate_id", "votes", ["candidate_id"])

    op.create_table(
        "config_entries",
        sa.Column("key", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

def downgrade() -> None:
    op.drop_table("config_entries")
    op.drop_index("ix_votes_candidate_id", table_name="votes")
    op.drop_index("ix_votes_voter_id", table_name="votes")
    op.drop_table("votes")
    op.drop_constraint("uq_activity_once_per_milestone", "activities", type_="unique")
    op.drop_index("ix_activities_commit_hash", table_name="activities")
    op.drop_index("ix_activities_milestone_id", table_name="activities")
    op.drop_index("ix_activities_enrollment_id", table_name="activities")
    op.drop_table("activities")
