"""Create the equipment_client_link table.

Revision ID: 0001_equipment_client_link
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "0001_equipment_client_link"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None

TABLE_NAME = "equipment_client_link"


def upgrade() -> None:
    # the table may predate alembic tracking when created via create_all_tables()
    if sa.inspect(op.get_bind()).has_table(TABLE_NAME):
        return
    op.create_table(
        TABLE_NAME,
        sa.Column("equipment_id", sa.Integer(), nullable=False),
        sa.Column("client_id", sa.Integer(), nullable=False),
        sa.Column("method", sa.String(length=32), nullable=False),
        sa.Column("legacy_customer_id", sa.Integer(), nullable=True),
        sa.Column("linked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("linked_by", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ["equipment_id"],
            ["equipment.id"],
            name="fk_equipment_client_link_equipment_id_equipment",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("equipment_id", name="pk_equipment_client_link"),
    )
    op.create_index(
        "ix_equipment_client_link_client_id", TABLE_NAME, ["client_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_equipment_client_link_client_id", table_name=TABLE_NAME)
    op.drop_table(TABLE_NAME)
