from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# Alembic identifiers
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = inspect(bind)

    # таблицу могли создать через INIT_DB_ON_START=1, тогда выходим тихо
    if "scheduled_messages" in insp.get_table_names():
        return

    op.create_table(
        "scheduled_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recipient_id", sa.BigInteger(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        # ISO-8601 строка в UTC
        sa.Column("fire_at", sa.String(length=40), nullable=False),
        sa.Column("sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("failed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.Date(), nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.PrimaryKeyConstraint("id", name="pk_scheduled_messages"),
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_scheduled_messages_recipient_id", "scheduled_messages", ["recipient_id"]
    )


def downgrade():
    bind = op.get_bind()
    insp = inspect(bind)

    if "scheduled_messages" in insp.get_table_names():
        op.drop_index("ix_scheduled_messages_recipient_id", table_name="scheduled_messages")
        op.drop_table("scheduled_messages")
