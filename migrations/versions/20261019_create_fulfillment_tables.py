"""Create area, item ledger, order and employee tables.

Revision ID: 20261019_create_fulfillment_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_create_fulfillment_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "area",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
    )

    op.create_table(
        "item",
        sa.Column("barcode_id", sa.String(length=128), primary_key=True),
        sa.Column("barcode_type", sa.String(length=64), nullable=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("total_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "item_location",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("item_id", sa.String(length=128), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bin", sa.String(length=64), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("area_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["item_id"], ["item.barcode_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["area_id"], ["area.id"]),
        sa.UniqueConstraint("item_id", "bin", name="uq_item_location_bin"),
        sa.CheckConstraint("quantity >= 0", name="ck_item_location_quantity"),
    )
    op.create_index("ix_item_location_item_id", "item_location", ["item_id"])
    op.create_index("ix_item_location_area_id", "item_location", ["area_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_date", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
    )
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "order_items",
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("barcode_id", sa.String(length=128), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("picked_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("picked_by", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("order_id", "barcode_id"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["barcode_id"], ["item.barcode_id"]),
        sa.CheckConstraint("quantity > 0", name="ck_order_items_quantity"),
        sa.CheckConstraint("picked_quantity >= 0", name="ck_order_items_picked"),
    )
    op.create_index("ix_order_items_picked_by", "order_items", ["picked_by"])

    op.create_table(
        "employee",
        sa.Column("account_id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(length=80), nullable=False),
        sa.Column("last_name", sa.String(length=80), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("position", sa.String(length=80), nullable=True),
    )

    op.create_table(
        "account",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("account_type", sa.String(length=32), nullable=False, server_default="picker"),
    )


def downgrade() -> None:
    op.drop_table("account")
    op.drop_table("employee")
    op.drop_index("ix_order_items_picked_by", table_name="order_items")
    op.drop_table("order_items")
    op.drop_index("ix_orders_status", table_name="orders")
    op.drop_table("orders")
    op.drop_index("ix_item_location_area_id", table_name="item_location")
    op.drop_index("ix_item_location_item_id", table_name="item_location")
    op.drop_table("item_location")
    op.drop_table("item")
    op.drop_table("area")
