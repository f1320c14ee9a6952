"""create submission rules and peer reviews

Revision ID: 7c1e52b0a9d4
Revises:
Create Date: 2026-10-19 10:12:41.208313

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c1e52b0a9d4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(50), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("short_identifier", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_assignments_short_identifier", "assignments", ["short_identifier"], unique=True)

    op.create_table(
        "submission_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "assignment_id",
            sa.Integer(),
            sa.ForeignKey("assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("rule_type", sa.String(50), nullable=False),
    )
    op.create_index("ix_submission_rules_assignment_id", "submission_rules", ["assignment_id"], unique=True)

    op.create_table(
        "periods",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "submission_rule_id",
            sa.Integer(),
            sa.ForeignKey("submission_rules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("hours_after_due", sa.Float(), nullable=False),
        sa.Column("deduction", sa.Float(), nullable=True),
        sa.Column("interval_hours", sa.Float(), nullable=True),
    )
    op.create_index("ix_periods_submission_rule_id", "periods", ["submission_rule_id"])

    op.create_table(
        "groupings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "assignment_id",
            sa.Integer(),
            sa.ForeignKey("assignments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("group_name", sa.String(255), nullable=False),
        sa.UniqueConstraint("assignment_id", "group_name", name="uq_groupings_assignment_name"),
    )
    op.create_index("ix_groupings_assignment_id", "groupings", ["assignment_id"])

    op.create_table(
        "memberships",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("grouping_id", sa.Integer(), sa.ForeignKey("groupings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("grouping_id", "student_id", name="uq_memberships_grouping_student"),
    )
    op.create_index("ix_memberships_grouping_id", "memberships", ["grouping_id"])
    op.create_index("ix_memberships_student_id", "memberships", ["student_id"])

    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("grouping_id", sa.Integer(), sa.ForeignKey("groupings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("assignment_id", "grouping_id", name="uq_submission_assignment_grouping"),
    )
    op.create_index("ix_submissions_assignment_id", "submissions", ["assignment_id"])
    op.create_index("ix_submissions_grouping_id", "submissions", ["grouping_id"])

    op.create_table(
        "results",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("submission_id", sa.Integer(), sa.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("marking_state", sa.String(20), nullable=False),
        sa.Column("total_mark", sa.Float(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("graded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_results_submission_id", "results", ["submission_id"])

    op.create_table(
        "peer_reviews",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("reviewer_id", sa.Integer(), sa.ForeignKey("groupings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("result_id", sa.Integer(), sa.ForeignKey("results.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("reviewer_id", "result_id", name="uq_peer_review_reviewer_result"),
    )
    op.create_index("ix_peer_reviews_reviewer_id", "peer_reviews", ["reviewer_id"])
    op.create_index("ix_peer_reviews_result_id", "peer_reviews", ["result_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("peer_reviews")
    op.drop_table("results")
    op.drop_table("submissions")
    op.drop_table("memberships")
    op.drop_table("groupings")
    op.drop_table("periods")
    op.drop_table("submission_rules")
    op.drop_table("assignments")
    op.drop_table("users")
