"""Management schema: devices, config snapshots, admin configs."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20251225_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "devices",
        sa.Column("device_id", sa.String(length=128), primary_key=True),
        sa.Column("fingerprint_hash", sa.String(length=128), nullable=False),
        sa.Column("last_seen", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_ip", sa.String(length=64), nullable=True),
        sa.Column("geo_country", sa.String(length=8), nullable=True),
        sa.Column("geo_region", sa.String(length=16), nullable=True),
        sa.Column("geo_city", sa.String(length=128), nullable=True),
        sa.Column("app_version", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "config_snapshots",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "device_id",
            sa.String(length=128),
            sa.ForeignKey("devices.device_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("snapshot", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_config_snapshots_device_created",
        "config_snapshots",
        ["device_id", "created_at"],
    )

    op.create_table(
        "admin_configs",
        sa.Column(
            "device_id",
            sa.String(length=128),
            sa.ForeignKey("devices.device_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("version", sa.BigInteger(), nullable=False),
        sa.Column("config", postgresql.JSONB(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("admin_configs")
    op.drop_index("ix_config_snapshots_device_created", table_name="config_snapshots")
    op.drop_table("config_snapshots")
    op.drop_table("devices")
