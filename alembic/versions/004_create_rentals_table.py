"""create rentals table

Revision ID: 004
Revises: 003
Create Date: 2026-03-03 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "rentals",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("customer_id", sa.Integer(), nullable=False),
        sa.Column("vehicle_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("cadence", sa.String(10), nullable=False),
        sa.Column("periodic_amount", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("closed_at", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["vehicle_id"], ["vehicles.id"]),
        sa.CheckConstraint(
            "cadence IN ('Daily', 'Weekly', 'Monthly')",
            name="ck_rentals_cadence",
        ),
        sa.CheckConstraint(
            "status IN ('Upcoming', 'Active', 'Closed')",
            name="ck_rentals_status",
        ),
        sa.CheckConstraint(
            "periodic_amount > 0",
            name="ck_rentals_periodic_amount_positive",
        ),
        # CHECK constraint: open-ended rentals have no end_date
        sa.CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="ck_rentals_end_after_start",
        ),
    )
    op.create_index("ix_rentals_id", "rentals", ["id"], unique=False)
    op.create_index("ix_rentals_customer_id", "rentals", ["customer_id"], unique=False)
    op.create_index("ix_rentals_vehicle_id", "rentals", ["vehicle_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_rentals_vehicle_id", table_name="rentals")
    op.drop_index("ix_rentals_customer_id", table_name="rentals")
    op.drop_index("ix_rentals_id", table_name="rentals")
    op.drop_table("rentals")
