"""Add booking payment record, property rating stats and the reviews table

Revision ID: glamp_002
Revises: glamp_001
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "glamp_002"
down_revision = "glamp_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column("bookings", sa.Column("payment_method", sa.String(30), nullable=True))
    op.add_column("bookings", sa.Column("payment_reference", sa.String(255), nullable=True))
    op.add_column("bookings", sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True))

    op.add_column("properties", sa.Column("average_rating", sa.Numeric(2, 1), server_default="0"))
    op.add_column("properties", sa.Column("review_count", sa.Integer, server_default="0"))
    op.add_column("properties", sa.Column("rating_breakdown", JSONB, nullable=True))

    op.create_table(
        "reviews",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "property_id", UUID(as_uuid=True),
            sa.ForeignKey("properties.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("booking_id", UUID(as_uuid=True), sa.ForeignKey("bookings.id"), nullable=False, unique=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reviewer_name", sa.String(255), nullable=True),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("categories", JSONB, nullable=False),
        sa.Column("host_response", sa.Text, nullable=True),
        sa.Column("host_response_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_public", sa.Boolean, server_default=sa.true()),
        sa.Column("helpful_votes", sa.Integer, server_default="0"),
        sa.Column("flag_count", sa.Integer, server_default="0"),
        sa.Column("flag_reasons", JSONB, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating"),
    )
    op.create_index("ix_reviews_property_public", "reviews", ["property_id", "is_public"])
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_reviews_user_id")
    op.drop_index("ix_reviews_property_public")
    op.drop_table("reviews")
    op.drop_column("properties", "rating_breakdown")
    op.drop_column("properties", "review_count")
    op.drop_column("properties", "average_rating")
    op.drop_column("bookings", "paid_at")
    op.drop_column("bookings", "payment_reference")
    op.drop_column("bookings", "payment_method")
