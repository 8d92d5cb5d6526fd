# backend/alembic/versions/002_reviews.py
"""Reviews and teacher rating stats

Revision ID: 002_reviews
Revises: 001_initial_schema
Create Date: 2026-10-17 00:00:00.000000

One review per booking is enforced by a unique booking_id; reviews without a
booking are allowed.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_reviews"
down_revision: Union[str, None] = "001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("teacher_profiles") as batch_op:
        batch_op.add_column(
            sa.Column("total_reviews", sa.Integer(), nullable=False, server_default="0")
        )
        batch_op.add_column(
            sa.Column("average_rating", sa.Numeric(3, 2), nullable=False, server_default="0")
        )

    op.create_table(
        "reviews",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "user_id", sa.String(26), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "teacher_profile_id",
            sa.String(26),
            sa.ForeignKey("teacher_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "booking_id",
            sa.String(26),
            sa.ForeignKey("bookings.id", ondelete="SET NULL"),
            nullable=True,
            unique=True,
        ),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("teacher_reply", sa.Text(), nullable=True),
        sa.Column("teacher_reply_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="check_review_rating_range"),
    )
    op.create_index("ix_reviews_id", "reviews", ["id"])
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"])
    op.create_index(
        "idx_reviews_teacher_visible", "reviews", ["teacher_profile_id", "is_visible"]
    )


def downgrade() -> None:
    op.drop_table("reviews")
    with op.batch_alter_table("teacher_profiles") as batch_op:
        batch_op.drop_column("average_rating")
        batch_op.drop_column("total_reviews")
