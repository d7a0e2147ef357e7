"""baseline: users, customers, invoices

Revision ID: 3a7c9e1b2d4f
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "3a7c9e1b2d4f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.String(36), primary_key=True, nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("email", sa.String(320), nullable=False),
            sa.Column("password", sa.Text(), nullable=False),
            sa.UniqueConstraint("email", name="uq_users_email"),
        )

    if "customers" not in existing_tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.String(36), primary_key=True, nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("email", sa.String(320), nullable=False),
            sa.Column("image_url", sa.String(512), nullable=False, server_default=""),
        )
        op.create_index("idx_customers_name", "customers", ["name"])

    if "invoices" not in existing_tables:
        op.create_table(
            "invoices",
            sa.Column("id", sa.String(36), primary_key=True, nullable=False),
            sa.Column("customer_id", sa.String(36), nullable=False),
            sa.Column("amount", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(16), nullable=False),
            sa.Column("date", sa.String(10), nullable=False),
            sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        )
        op.create_index("idx_invoices_customer_id", "invoices", ["customer_id"])
        op.create_index("idx_invoices_date", "invoices", ["date"])


def downgrade() -> None:
    op.drop_index("idx_invoices_date", table_name="invoices")
    op.drop_index("idx_invoices_customer_id", table_name="invoices")
    op.drop_table("invoices")

    op.drop_index("idx_customers_name", table_name="customers")
    op.drop_table("customers")

    op.drop_table("users")
