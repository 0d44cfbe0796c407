"""Create FridgeMind tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  inventory_items, eating_out_logs, receipts, receipt_items,
       shopping_lists and shopping_list_items.
How:   PostgreSQL UUID keys defaulting to gen_random_uuid(), TIMESTAMPTZ
       timestamps, NUMERIC money. The partial unique index
       uq_shopping_lists_active_user enforces one active list per user.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def _user_id_column() -> sa.Column:
    return sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False)


def _created_at_column() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.TIMESTAMP(timezone=True),
        server_default=sa.text("CURRENT_TIMESTAMP"),
        nullable=False,
    )


def _money(name: str, nullable: bool = True, **kwargs) -> sa.Column:
    return sa.Column(name, sa.Numeric(10, 2), nullable=nullable, **kwargs)


def upgrade() -> None:
    # ── inventory_items ───────────────────────────────────────────────────
    op.create_table(
        "inventory_items",
        _id_column(),
        _user_id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("storage_category", sa.String(50), nullable=True),
        sa.Column("nutritional_type", sa.String(50), nullable=True),
        sa.Column(
            "location",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'fridge'"),
            comment="fridge, freezer or pantry",
        ),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=True, server_default=sa.text("1")),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("freshness", sa.String(20), nullable=True),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at_column(),
        sa.Column(
            "consumed_at",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="NULL while the item is on hand",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_inventory_items_user_consumed", "inventory_items", ["user_id", "consumed_at"]
    )

    # ── eating_out_logs ───────────────────────────────────────────────────
    op.create_table(
        "eating_out_logs",
        _id_column(),
        _user_id_column(),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("restaurant_name", sa.String(255), nullable=True),
        sa.Column("meal_name", sa.String(255), nullable=False),
        sa.Column("meal_type", sa.String(20), nullable=True),
        sa.Column("estimated_calories", sa.Integer(), nullable=True),
        sa.Column("protein_grams", sa.Numeric(10, 2), nullable=True),
        sa.Column("carbs_grams", sa.Numeric(10, 2), nullable=True),
        sa.Column("fat_grams", sa.Numeric(10, 2), nullable=True),
        sa.Column("fiber_grams", sa.Numeric(10, 2), nullable=True),
        sa.Column("vegetable_servings", sa.Numeric(10, 2), nullable=True),
        sa.Column("detected_components", sa.JSON(), nullable=True),
        sa.Column("health_assessment", sa.String(50), nullable=True),
        sa.Column("ai_notes", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "eaten_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
    )
    # Serves "my most recent meals"
    op.create_index(
        "idx_eating_out_logs_user_eaten",
        "eating_out_logs",
        ["user_id", sa.text("eaten_at DESC")],
    )

    # ── receipts ──────────────────────────────────────────────────────────
    op.create_table(
        "receipts",
        _id_column(),
        _user_id_column(),
        sa.Column(
            "store_name",
            sa.String(255),
            nullable=False,
            server_default=sa.text("'Unknown Store'"),
        ),
        sa.Column("store_branch", sa.String(255), nullable=True),
        sa.Column("receipt_date", sa.Date(), nullable=False),
        sa.Column("receipt_number", sa.String(100), nullable=True),
        _money("subtotal"),
        _money("gst"),
        _money("total", nullable=False),
        sa.Column("payment_method", sa.String(50), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column(
            "raw_ocr_response",
            sa.JSON(),
            nullable=True,
            comment="Parsed model output as stored at upload time",
        ),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_receipts_user_date",
        "receipts",
        ["user_id", sa.text("receipt_date DESC")],
    )

    # ── receipt_items ─────────────────────────────────────────────────────
    op.create_table(
        "receipt_items",
        _id_column(),
        sa.Column("receipt_id", postgresql.UUID(as_uuid=True), nullable=False),
        _user_id_column(),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("normalized_name", sa.String(255), nullable=True),
        sa.Column("food_type", sa.String(100), nullable=True),
        sa.Column("item_code", sa.String(100), nullable=True),
        sa.Column("quantity", sa.Numeric(10, 3), nullable=True, server_default=sa.text("1")),
        sa.Column("unit", sa.String(50), nullable=True, server_default=sa.text("'pc'")),
        _money("unit_price"),
        _money("total_price", nullable=False),
        _money("discount", server_default=sa.text("0")),
        sa.Column("category", sa.String(50), nullable=True, server_default=sa.text("'other'")),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["receipt_id"], ["receipts.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_receipt_items_receipt", "receipt_items", ["receipt_id"])
    op.create_index("idx_receipt_items_user", "receipt_items", ["user_id"])

    # ── shopping_lists ────────────────────────────────────────────────────
    op.create_table(
        "shopping_lists",
        _id_column(),
        _user_id_column(),
        sa.Column(
            "name",
            sa.String(255),
            nullable=False,
            server_default=sa.text("'My Shopping List'"),
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
    )
    # Target of INSERT ... ON CONFLICT (user_id) WHERE is_active DO NOTHING
    op.create_index(
        "uq_shopping_lists_active_user",
        "shopping_lists",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    # ── shopping_list_items ───────────────────────────────────────────────
    op.create_table(
        "shopping_list_items",
        _id_column(),
        sa.Column("list_id", postgresql.UUID(as_uuid=True), nullable=False),
        _user_id_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=True, server_default=sa.text("1")),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("is_checked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column(
            "source",
            sa.String(30),
            nullable=True,
            comment="recipe, meal_plan, manual, auto_restock, expiring, craving",
        ),
        sa.Column("recipe_group", sa.String(255), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at_column(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["list_id"], ["shopping_lists.id"], ondelete="CASCADE"),
    )
    op.create_index("idx_shopping_list_items_list", "shopping_list_items", ["list_id"])


def downgrade() -> None:
    op.drop_index("idx_shopping_list_items_list", table_name="shopping_list_items")
    op.drop_table("shopping_list_items")
    op.drop_index("uq_shopping_lists_active_user", table_name="shopping_lists")
    op.drop_table("shopping_lists")
    op.drop_index("idx_receipt_items_user", table_name="receipt_items")
    op.drop_index("idx_receipt_items_receipt", table_name="receipt_items")
    op.drop_table("receipt_items")
    op.drop_index("idx_receipts_user_date", table_name="receipts")
    op.drop_table("receipts")
    op.drop_index("idx_eating_out_logs_user_eaten", table_name="eating_out_logs")
    op.drop_table("eating_out_logs")
    op.drop_index("idx_inventory_items_user_consumed", table_name="inventory_items")
    op.drop_table("inventory_items")
