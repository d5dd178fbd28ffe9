"""add bank accounts

Revision ID: 1b2c3d4e5f6a
Revises: 0a1b2c3d4e5f
Create Date: 2026-10-19 16:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "1b2c3d4e5f6a"
down_revision = "0a1b2c3d4e5f"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "bank_accounts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("bank_name", sa.String(length=255), nullable=False),
        sa.Column("account_holder", sa.String(length=255), nullable=False),
        sa.Column("account_type", sa.String(length=50), nullable=False),
        sa.Column("account_number", sa.String(length=64), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("swift_code", sa.String(length=20), nullable=True),
        sa.Column("routing_number", sa.String(length=50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_bank_accounts_currency"), "bank_accounts", ["currency"], unique=False
    )

    op.add_column("orders", sa.Column("bank_account_id", sa.String(length=36), nullable=True))
    op.create_index(
        op.f("ix_orders_bank_account_id"), "orders", ["bank_account_id"], unique=False
    )
    op.create_foreign_key(
        "fk_orders_bank_account_id",
        "orders",
        "bank_accounts",
        ["bank_account_id"],
        ["id"],
        ondelete="RESTRICT",
    )


def downgrade() -> None:
    op.drop_constraint("fk_orders_bank_account_id", "orders", type_="foreignkey")
    op.drop_index(op.f("ix_orders_bank_account_id"), table_name="orders")
    op.drop_column("orders", "bank_account_id")
    op.drop_index(op.f("ix_bank_accounts_currency"), table_name="bank_accounts")
    op.drop_table("bank_accounts")
