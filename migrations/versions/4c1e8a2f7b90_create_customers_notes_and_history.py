"""create invoice types, customers, notes, print history and zip codes

Revision ID: 4c1e8a2f7b90
Revises:
Create Date: 2026-10-17

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "4c1e8a2f7b90"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=False),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=False),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    def _has_index(table: str, name: str) -> bool:
        return any(ix.get("name") == name for ix in inspect(op.get_bind()).get_indexes(table))

    if "invoice_types" not in existing_tables:
        op.create_table(
            "invoice_types",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(64), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint("name", name="uq_invoice_types_name"),
        )

    if "customers" not in existing_tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.Text(), nullable=False),
            sa.Column("name_kana", sa.Text(), nullable=True),
            sa.Column("zip_code", sa.Text(), nullable=True),
            sa.Column("address1", sa.Text(), nullable=True),
            sa.Column("address2", sa.Text(), nullable=True),
            sa.Column("phone", sa.Text(), nullable=True),
            sa.Column("email", sa.Text(), nullable=True),
            sa.Column("invoice_type_id", sa.Integer(), nullable=True),
            sa.Column("notes", sa.Integer(), nullable=False, server_default=sa.text("0")),
            *_timestamps(),
            sa.ForeignKeyConstraint(["invoice_type_id"], ["invoice_types.id"], ondelete="RESTRICT"),
        )
    for idx_name, cols in (
        ("idx_customers_name", ["name"]),
        ("idx_customers_invoice_type_id", ["invoice_type_id"]),
    ):
        if not _has_index("customers", idx_name):
            op.create_index(idx_name, "customers", cols)

    if "notes" not in existing_tables:
        op.create_table(
            "notes",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("customer_id", sa.Integer(), nullable=False),
            sa.Column("rank", sa.Integer(), nullable=False),
            sa.Column("title", sa.Text(), nullable=True),
            sa.Column("content", sa.Text(), nullable=False),
            *_timestamps(),
            sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
            sa.UniqueConstraint("customer_id", "rank", name="uq_notes_customer_id_rank"),
            sa.CheckConstraint("rank >= 1", name="ck_notes_rank_positive"),
        )

    if "shipping_instruction_print_history" not in existing_tables:
        op.create_table(
            "shipping_instruction_print_history",
            sa.Column("delivery_date", sa.Date(), nullable=False),
            sa.Column("printed_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("delivery_time_str", sa.String(32), nullable=False, server_default=""),
            sa.Column("page_num_str", sa.String(8), nullable=False, server_default=""),
            sa.Column("customer_name", sa.String(60), nullable=False),
            sa.Column("customer_address", sa.String(96), nullable=False),
            sa.Column("wholesaler", sa.String(32), nullable=False, server_default=""),
            sa.Column("order_number", sa.String(64), nullable=False, server_default=""),
            sa.Column("shipping_date", sa.Date(), nullable=True),
            sa.Column("carrier", sa.String(32), nullable=False, server_default=""),
            sa.Column("package_count", sa.Integer(), nullable=True),
            sa.Column("items_of_order", sa.Text(), nullable=False),
            sa.PrimaryKeyConstraint("delivery_date", "printed_at"),
        )
    for idx_name, cols in (
        ("idx_sipr_printed_at", ["printed_at"]),
        ("idx_sipr_shipping_date", ["shipping_date"]),
    ):
        if not _has_index("shipping_instruction_print_history", idx_name):
            op.create_index(idx_name, "shipping_instruction_print_history", cols)

    if "zip_codes" not in existing_tables:
        op.create_table(
            "zip_codes",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("zip_code", sa.String(7), nullable=False),
            sa.Column("prefecture", sa.Text(), nullable=False),
            sa.Column("city", sa.Text(), nullable=False),
            sa.Column("town", sa.Text(), nullable=True),
        )
    if not _has_index("zip_codes", "idx_zip_codes_zip_code"):
        op.create_index("idx_zip_codes_zip_code", "zip_codes", ["zip_code"])


def downgrade() -> None:
    op.drop_index("idx_zip_codes_zip_code", table_name="zip_codes")
    op.drop_table("zip_codes")

    op.drop_index("idx_sipr_shipping_date", table_name="shipping_instruction_print_history")
    op.drop_index("idx_sipr_printed_at", table_name="shipping_instruction_print_history")
    op.drop_table("shipping_instruction_print_history")

    op.drop_table("notes")

    op.drop_index("idx_customers_invoice_type_id", table_name="customers")
    op.drop_index("idx_customers_name", table_name="customers")
    op.drop_table("customers")

    op.drop_table("invoice_types")
