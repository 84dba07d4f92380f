"""image contributions and approved vehicle images"""

from alembic import op
import sqlalchemy as sa


revision = "0003_image_contributions"
down_revision = "0002_contributions_and_votes"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "image_contributions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=True),
        sa.Column("contribution_id", sa.Integer(), nullable=True),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column("path", sa.String(length=500), nullable=False),
        sa.Column("alt_text", sa.String(length=255), nullable=True),
        sa.Column("caption", sa.String(length=500), nullable=True),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("mime_type", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.Integer(), nullable=True),
        sa.Column("rejection_comment", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["contribution_id"], ["contributions.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_image_contributions_id", "image_contributions", ["id"], unique=False)
    op.create_index("ix_image_contributions_user_id", "image_contributions", ["user_id"], unique=False)
    op.create_index("ix_image_contributions_status", "image_contributions", ["status"], unique=False)
    op.create_index("ix_image_contributions_vehicle_id", "image_contributions", ["vehicle_id"], unique=False)
    op.create_index("ix_image_contributions_contribution_id", "image_contributions", ["contribution_id"], unique=False)

    op.create_table(
        "vehicle_images",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("path", sa.String(length=500), nullable=False),
        sa.Column("url", sa.String(length=1000), nullable=False),
        sa.Column("alt_text", sa.String(length=255), nullable=True),
        sa.Column("caption", sa.String(length=500), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("mime_type", sa.String(length=100), nullable=True),
        sa.Column("uploaded_by", sa.Integer(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("approved_by", sa.Integer(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["approved_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_vehicle_images_id", "vehicle_images", ["id"], unique=False)
    op.create_index("ix_vehicle_images_vehicle_id", "vehicle_images", ["vehicle_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_vehicle_images_vehicle_id", table_name="vehicle_images")
    op.drop_index("ix_vehicle_images_id", table_name="vehicle_images")
    op.drop_table("vehicle_images")
    op.drop_index("ix_image_contributions_contribution_id", table_name="image_contributions")
    op.drop_index("ix_image_contributions_vehicle_id", table_name="image_contributions")
    op.drop_index("ix_image_contributions_status", table_name="image_contributions")
    op.drop_index("ix_image_contributions_user_id", table_name="image_contributions")
    op.drop_index("ix_image_contributions_id", table_name="image_contributions")
    op.drop_table("image_contributions")
