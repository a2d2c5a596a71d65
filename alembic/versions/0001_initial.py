"""initial

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "phone_numbers",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_phone_numbers_id", "phone_numbers", ["id"], unique=False)
    op.create_index("ix_phone_numbers_phone_number", "phone_numbers", ["phone_number"], unique=True)

    op.create_table(
        "airtime_transactions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False, server_default="NGN"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("network_provider", sa.String(50), nullable=True),
        sa.Column("transaction_reference", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'cancelled')",
            name="status_check",
        ),
        sa.ForeignKeyConstraint(
            ["phone_number"],
            ["phone_numbers.phone_number"],
            name="fk_phone_number",
        ),
    )
    op.create_index("ix_airtime_transactions_id", "airtime_transactions", ["id"], unique=False)
    op.create_index("ix_airtime_transactions_phone_number", "airtime_transactions", ["phone_number"], unique=False)
    op.create_index("ix_airtime_transactions_status", "airtime_transactions", ["status"], unique=False)
    op.create_index("ix_airtime_transactions_created_at", "airtime_transactions", ["created_at"], unique=False)


def downgrade():
    op.drop_index("ix_airtime_transactions_created_at", table_name="airtime_transactions")
    op.drop_index("ix_airtime_transactions_status", table_name="airtime_transactions")
    op.drop_index("ix_airtime_transactions_phone_number", table_name="airtime_transactions")
    op.drop_index("ix_airtime_transactions_id", table_name="airtime_transactions")
    op.drop_table("airtime_transactions")
    op.drop_index("ix_phone_numbers_phone_number", table_name="phone_numbers")
    op.drop_index("ix_phone_numbers_id", table_name="phone_numbers")
    op.drop_table("phone_numbers")
