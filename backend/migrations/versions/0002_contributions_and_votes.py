"""vehicle contributions and peer votes"""

from alembic import op
import sqlalchemy as sa


revision = "0002_contributions_and_votes"
down_revision = "0001_catalog_and_users"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "contributions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("change_type", sa.String(length=16), nullable=False, server_default="NEW"),
        sa.Column("target_vehicle_id", sa.Integer(), nullable=True),
        sa.Column("vehicle_data", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.Integer(), nullable=True),
        sa.Column("rejection_comment", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_contributions_id", "contributions", ["id"], unique=False)
    op.create_index("ix_contributions_user_id", "contributions", ["user_id"], unique=False)
    op.create_index("ix_contributions_status", "contributions", ["status"], unique=False)
    op.create_index("ix_contributions_target_vehicle_id", "contributions", ["target_vehicle_id"], unique=False)
    op.create_index("ix_contributions_status_created", "contributions", ["status", "created_at"], unique=False)

    op.create_table(
        "contribution_reviews",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("contribution_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("vote", sa.Integer(), nullable=False, server_default="1"),
        sa.ForeignKeyConstraint(["contribution_id"], ["contributions.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("contribution_id", "user_id", name="uq_contribution_review_user"),
    )
    op.create_index("ix_contribution_reviews_id", "contribution_reviews", ["id"], unique=False)
    op.create_index("ix_contribution_reviews_contribution_id", "contribution_reviews", ["contribution_id"], unique=False)
    op.create_index("ix_contribution_reviews_user_id", "contribution_reviews", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_contribution_reviews_user_id", table_name="contribution_reviews")
    op.drop_index("ix_contribution_reviews_contribution_id", table_name="contribution_reviews")
    op.drop_index("ix_contribution_reviews_id", table_name="contribution_reviews")
    op.drop_table("contribution_reviews")
    op.drop_index("ix_contributions_status_created", table_name="contributions")
    op.drop_index("ix_contributions_target_vehicle_id", table_name="contributions")
    op.drop_index("ix_contributions_status", table_name="contributions")
    op.drop_index("ix_contributions_user_id", table_name="contributions")
    op.drop_index("ix_contributions_id", table_name="contributions")
    op.drop_table("contributions")
