"""create users, info requests, sent alerts and scheduler locks

Revision ID: 0001_sent_alerts
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_sent_alerts"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("1")),
        *_timestamps(),
    )

    op.create_table(
        "info_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("url_title", sa.String(length=255), nullable=False, unique=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("described_state", sa.String(length=64), nullable=False, server_default="waiting_response"),
        sa.Column("date_response_required_by", sa.Date, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_info_requests_user_id", "info_requests", ["user_id"])
    op.create_index(
        "ix_info_requests_date_response_required_by", "info_requests", ["date_response_required_by"]
    )

    op.create_table(
        "user_info_request_sent_alerts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "info_request_id",
            sa.Integer,
            sa.ForeignKey("info_requests.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("alert_type", sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "info_request_id", "alert_type", name="uq_sent_alert_user_request_type"
        ),
        sa.CheckConstraint("alert_type IN ('overdue_1')", name="ck_sent_alert_alert_type"),
    )
    op.create_index(
        "ix_user_info_request_sent_alerts_user_id", "user_info_request_sent_alerts", ["user_id"]
    )
    op.create_index(
        "ix_user_info_request_sent_alerts_info_request_id",
        "user_info_request_sent_alerts",
        ["info_request_id"],
    )

    op.create_table(
        "scheduler_locks",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=64), nullable=False, unique=True),
        sa.Column("owner", sa.String(length=128), nullable=False),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("scheduler_locks")
    op.drop_index("ix_user_info_request_sent_alerts_info_request_id", table_name="user_info_request_sent_alerts")
    op.drop_index("ix_user_info_request_sent_alerts_user_id", table_name="user_info_request_sent_alerts")
    op.drop_table("user_info_request_sent_alerts")
    op.drop_index("ix_info_requests_date_response_required_by", table_name="info_requests")
    op.drop_index("ix_info_requests_user_id", table_name="info_requests")
    op.drop_table("info_requests")
    op.drop_table("users")
