"""create charges table

Revision ID: 005
Revises: 004
Create Date: 2026-03-03 10:30:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "charges",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("rental_id", sa.Integer(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("amount_outstanding", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["rental_id"], ["rentals.id"], ondelete="CASCADE"),
        # Unique constraint: one charge per rental billing period
        sa.UniqueConstraint("rental_id", "due_date", name="uq_charges_rental_due_date"),
        sa.CheckConstraint("amount >= 0", name="ck_charges_amount_non_negative"),
        sa.CheckConstraint(
            "amount_outstanding >= 0 AND amount_outstanding <= amount",
            name="ck_charges_outstanding_within_amount",
        ),
        sa.CheckConstraint(
            "status IN ('Open', 'PartiallyPaid', 'Paid', 'Overdue')",
            name="ck_charges_status",
        ),
    )
    op.create_index("ix_charges_id", "charges", ["id"], unique=False)
    op.create_index("ix_charges_rental_id", "charges", ["rental_id"], unique=False)
    op.create_index("ix_charges_due_date", "charges", ["due_date"], unique=False)
    op.create_index("ix_charges_status", "charges", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_charges_status", table_name="charges")
    op.drop_index("ix_charges_due_date", table_name="charges")
    op.drop_index("ix_charges_rental_id", table_name="charges")
    op.drop_index("ix_charges_id", table_name="charges")
    op.drop_table("charges")
