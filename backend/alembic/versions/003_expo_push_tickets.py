"""Add expo_push_tickets: one row per accepted Expo message, resolved by the receipt job.

(status, created_at) index serves the receipt query: status = 'pending' AND created_at > now - TTL.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "expo_push_tickets",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("subscriber_uid", sa.String(128), nullable=False),
        sa.Column("friend_uid", sa.String(128), nullable=False),
        sa.Column("beacon_id", sa.String(128), nullable=False),
        sa.Column("token", sa.String(256), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_expo_push_tickets_status_created_at",
        "expo_push_tickets",
        ["status", "created_at"],
        unique=False,
    )
    op.create_index("ix_expo_push_tickets_subscriber_uid", "expo_push_tickets", ["subscriber_uid"], unique=False)
    op.create_index("ix_expo_push_tickets_beacon_id", "expo_push_tickets", ["beacon_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_expo_push_tickets_beacon_id", table_name="expo_push_tickets")
    op.drop_index("ix_expo_push_tickets_subscriber_uid", table_name="expo_push_tickets")
    op.drop_index("ix_expo_push_tickets_status_created_at", table_name="expo_push_tickets")
    op.drop_table("expo_push_tickets")
