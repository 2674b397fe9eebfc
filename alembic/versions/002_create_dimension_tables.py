"""Create dimension tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:10:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# table -> (index prefix, extra typed column)
DIMENSIONS = {
    "buyers": ("buyers", None),
    "funnels": ("funnels", "category"),
    "traffic_sources": ("sources", "source_type"),
    "campaigns": ("campaigns", "campaign_type"),
}


def upgrade() -> None:
    """Create buyers, funnels, traffic_sources and campaigns."""
    for table_name, (prefix, extra) in DIMENSIONS.items():
        columns = [
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("partner_id", sa.Integer(), nullable=False),
            sa.Column("original_value", sa.String(255), nullable=False),
            sa.Column("original_field", sa.String(100), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column(
                "created_at",
                sa.TIMESTAMP(timezone=True),
                nullable=False,
                server_default=sa.func.now(),
            ),
            sa.Column(
                "updated_at",
                sa.TIMESTAMP(timezone=True),
                nullable=False,
                server_default=sa.func.now(),
            ),
        ]
        if extra:
            columns.append(sa.Column(extra, sa.String(100), nullable=True))

        op.create_table(table_name, *columns)
        op.create_index(
            f"{prefix}_partner_value_idx", table_name, ["partner_id", "original_value"]
        )
        op.create_index(f"{prefix}_name_idx", table_name, ["name"])
        if extra and table_name != "campaigns":
            op.create_index(f"{prefix}_{extra.split('_')[-1]}_idx", table_name, [extra])


def downgrade() -> None:
    """Drop dimension tables."""
    for table_name in reversed(list(DIMENSIONS)):
        op.drop_table(table_name)
