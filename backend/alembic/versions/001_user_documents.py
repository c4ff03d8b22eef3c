"""Add users and profiles: coarse user documents carrying legacy single-token mirrors."""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("uid", sa.String(128), primary_key=True),
        sa.Column("expo_push_token", sa.String(256), nullable=True),
        sa.Column("push_token", sa.String(256), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "profiles",
        sa.Column("uid", sa.String(128), primary_key=True),
        sa.Column("display_name", sa.String(128), nullable=True),
        sa.Column("expo_push_token", sa.String(256), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("profiles")
    op.drop_table("users")
