"""init

Revision ID: 0001_init
Revises: 
Create Date: 2026-10-19

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _ts(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
    )

    op.create_table(
        "shops",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("owner_username", sa.String(length=50), nullable=False),
        sa.Column("owner_password_hash", sa.String(length=255), nullable=False),
        sa.Column("contact_phone", sa.String(length=20), nullable=True),
        sa.Column("contact_email", sa.String(length=100), nullable=True),
        sa.Column("address", sa.String(length=100), nullable=True),
        sa.Column("image_url", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        _ts("valid_until"),
        sa.Column("settings", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("order_status_flow", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_shops_owner_username", "shops", ["owner_username"], unique=True)
    op.create_index("ix_shops_valid_until", "shops", ["valid_until"])

    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default=sa.text("'private_user'")),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("type", sa.String(length=16), nullable=False, server_default=sa.text("'delivery'")),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_users_name", "users", ["name"], unique=True)

    op.create_table(
        "products",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("shop_id", sa.BigInteger(), sa.ForeignKey("shops.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("stock", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("image_url", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default=sa.text("'pending'")),
        _ts("created_at"),
        _ts("updated_at"),
        sa.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
    )
    op.create_index("ix_products_shop_id", "products", ["shop_id"])
    op.create_index("ix_products_status", "products", ["status"])

    op.create_table(
        "product_option_categories",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_multiple", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_product_option_categories_product_id", "product_option_categories", ["product_id"])

    op.create_table(
        "product_options",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column(
            "category_id", sa.BigInteger(), sa.ForeignKey("product_option_categories.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("price_adjustment", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_product_options_category_id", "product_options", ["category_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("shop_id", sa.BigInteger(), sa.ForeignKey("shops.id"), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.Integer(), nullable=False),
        sa.Column("remark", sa.Text(), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_orders_shop_id", "orders", ["shop_id"])
    op.create_index("ix_orders_created_at", "orders", ["created_at"])
    op.create_index("ix_orders_shop_status", "orders", ["shop_id", "status"])
    op.create_index("ix_orders_user_shop_status", "orders", ["user_id", "shop_id", "status"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("order_id", sa.BigInteger(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.BigInteger(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("product_description", sa.Text(), nullable=True),
        sa.Column("product_image_url", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_product_id", "order_items", ["product_id"])

    op.create_table(
        "order_item_options",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("order_item_id", sa.BigInteger(), sa.ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("category_id", sa.BigInteger(), nullable=False),
        sa.Column("option_id", sa.BigInteger(), nullable=False),
        sa.Column("option_name", sa.String(length=100), nullable=False),
        sa.Column("category_name", sa.String(length=100), nullable=False),
        sa.Column("price_adjustment", sa.Numeric(12, 2), nullable=False),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_order_item_options_order_item_id", "order_item_options", ["order_item_id"])
    op.create_index("ix_order_item_options_category_id", "order_item_options", ["category_id"])

    op.create_table(
        "order_status_logs",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("order_id", sa.BigInteger(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("old_status", sa.Integer(), nullable=True),
        sa.Column("new_status", sa.Integer(), nullable=False),
        _ts("changed_time"),
    )
    op.create_index("ix_order_status_logs_order_id", "order_status_logs", ["order_id"])

    op.create_table(
        "blacklisted_tokens",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("token", sa.String(length=500), nullable=False, unique=True),
        _ts("expired_at"),
        _ts("created_at"),
    )
    op.create_index("ix_blacklisted_tokens_expired_at", "blacklisted_tokens", ["expired_at"])

    op.create_table(
        "temp_tokens",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column("shop_id", sa.BigInteger(), sa.ForeignKey("shops.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("token", sa.String(length=6), nullable=False),
        _ts("expires_at"),
        _ts("created_at"),
        _ts("updated_at"),
    )
    op.create_index("ix_temp_tokens_shop_id", "temp_tokens", ["shop_id"])
    op.create_index("ix_temp_tokens_user_id", "temp_tokens", ["user_id"])
    op.create_index("ix_temp_tokens_expires_at", "temp_tokens", ["expires_at"])

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("shop_id", sa.BigInteger(), sa.ForeignKey("shops.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("description", sa.String(length=200), nullable=True),
        _ts("created_at"),
        _ts("updated_at"),
        sa.UniqueConstraint("shop_id", "name", name="uq_tags_shop_name"),
    )
    op.create_index("ix_tags_shop_id", "tags", ["shop_id"])

    op.create_table(
        "product_tags",
        sa.Column("product_id", sa.BigInteger(), sa.ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("shop_id", sa.BigInteger(), nullable=False),
        _ts("created_at"),
    )
    op.create_index("ix_product_tags_shop_id", "product_tags", ["shop_id"])


def downgrade() -> None:
    for table in (
        "product_tags",
        "tags",
        "temp_tokens",
        "blacklisted_tokens",
        "order_status_logs",
        "order_item_options",
        "order_items",
        "orders",
        "product_options",
        "product_option_categories",
        "products",
        "users",
        "shops",
        "admins",
    ):
        op.drop_table(table)
