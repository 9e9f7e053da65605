"""Areas and measurement records.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_MEASUREMENTS = (
    "ph", "hardness", "tds", "turbidity", "alkalinity",
    "nitrate", "fluoride", "chloride", "conductivity", "temperature",
)


def upgrade() -> None:
    op.create_table(
        "areas",
        sa.Column("area_id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_areas_name", "areas", ["name"], unique=True)

    op.create_table(
        "records",
        sa.Column("record_id", sa.Uuid, primary_key=True),
        sa.Column(
            "area_id", sa.Uuid, sa.ForeignKey("areas.area_id"), nullable=False,
        ),
        sa.Column("date", sa.Date, nullable=False),
        *(sa.Column(name, sa.Float, nullable=True) for name in _MEASUREMENTS),
        sa.Column("wqi", sa.Float, nullable=True),
        sa.Column("label", sa.String(20), nullable=True),
        sa.Column("confidence", sa.Integer, nullable=True),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_records_area_id", "records", ["area_id"])


def downgrade() -> None:
    op.drop_index("ix_records_area_id", table_name="records")
    op.drop_table("records")
    op.drop_index("ix_areas_name", table_name="areas")
    op.drop_table("areas")
