"""Add push_tokens (one row per installation) and both opt-in locations.

friend_subscriptions is the canonical opt-in; user_friends.notify is the pre-migration toggle
(never backfilled, so both are read).
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "push_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uid", sa.String(128), nullable=False),
        sa.Column("installation_id", sa.String(128), nullable=False),
        sa.Column("token", sa.String(256), nullable=False),
        sa.Column("platform", sa.String(16), nullable=False, server_default="unknown"),
        sa.Column("migrated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("uid", "installation_id", name="uq_push_tokens_uid_installation"),
    )
    op.create_index("ix_push_tokens_uid", "push_tokens", ["uid"], unique=False)
    op.create_index("ix_push_tokens_token", "push_tokens", ["token"], unique=False)

    op.create_table(
        "friend_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("recipient_uid", sa.String(128), nullable=False),
        sa.Column("owner_uid", sa.String(128), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("recipient_uid", "owner_uid", name="uq_friend_subscriptions_recipient_owner"),
    )
    op.create_index("ix_friend_subscriptions_recipient_uid", "friend_subscriptions", ["recipient_uid"], unique=False)

    op.create_table(
        "user_friends",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_uid", sa.String(128), nullable=False),
        sa.Column("friend_uid", sa.String(128), nullable=False),
        sa.Column("notify", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_uid", "friend_uid", name="uq_user_friends_user_friend"),
    )
    op.create_index("ix_user_friends_user_uid", "user_friends", ["user_uid"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_user_friends_user_uid", table_name="user_friends")
    op.drop_table("user_friends")
    op.drop_index("ix_friend_subscriptions_recipient_uid", table_name="friend_subscriptions")
    op.drop_table("friend_subscriptions")
    op.drop_index("ix_push_tokens_token", table_name="push_tokens")
    op.drop_index("ix_push_tokens_uid", table_name="push_tokens")
    op.drop_table("push_tokens")
