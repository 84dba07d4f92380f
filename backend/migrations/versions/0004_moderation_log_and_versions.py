"""moderation log and optimistic version token on vehicles"""

from alembic import op
import sqlalchemy as sa


revision = "0004_moderation_log_and_versions"
down_revision = "0003_image_contributions"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "moderation_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("target_type", sa.String(length=32), nullable=False, server_default="CONTRIBUTION"),
        sa.Column("target_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=16), nullable=False),
        sa.Column("moderator_id", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["moderator_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_moderation_logs_id", "moderation_logs", ["id"], unique=False)
    op.create_index("ix_moderation_logs_target_id", "moderation_logs", ["target_id"], unique=False)

    with op.batch_alter_table("vehicles") as batch_op:
        batch_op.add_column(sa.Column("version", sa.Integer(), nullable=False, server_default="1"))

    with op.batch_alter_table("contributions") as batch_op:
        batch_op.add_column(sa.Column("base_vehicle_version", sa.Integer(), nullable=True))


def downgrade() -> None:
    with op.batch_alter_table("contributions") as batch_op:
        batch_op.drop_column("base_vehicle_version")

    with op.batch_alter_table("vehicles") as batch_op:
        batch_op.drop_column("version")

    op.drop_index("ix_moderation_logs_target_id", table_name="moderation_logs")
    op.drop_index("ix_moderation_logs_id", table_name="moderation_logs")
    op.drop_table("moderation_logs")
