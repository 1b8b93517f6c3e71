"""initial warehouse inventory schema

Revision ID: 20260301_0001
Revises:
Create Date: 2026-03-01 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20260301_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _table_exists(inspector: sa.Inspector, table_name: str) -> bool:
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not _table_exists(inspector, "users"):
        op.create_table(
            "users",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("username", sa.String(length=50), nullable=False),
            sa.Column("hashed_password", sa.String(length=255), nullable=False),
            sa.Column("full_name", sa.String(length=100), nullable=True),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="staff"),
            sa.Column("is_active", sa.Boolean(), nullable=True, server_default=sa.true()),
            sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), nullable=True, server_default=sa.func.now()),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)
        op.create_index("ix_users_username", "users", ["username"], unique=True)
        op.create_index("ux_users_email_lower", "users", [sa.text("lower(email)")], unique=True)
        op.create_index("ux_users_username_lower", "users", [sa.text("lower(username)")], unique=True)

    if not _table_exists(inspector, "categories"):
        op.create_table(
            "categories",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("name"),
        )

    if not _table_exists(inspector, "warehouse_areas"):
        op.create_table(
            "warehouse_areas",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("type", sa.String(length=20), nullable=False, server_default="area"),
            sa.Column("x", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("y", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("width", sa.Integer(), nullable=False, server_default="100"),
            sa.Column("height", sa.Integer(), nullable=False, server_default="100"),
            sa.Column("color", sa.String(length=20), nullable=False, server_default="#3b82f6"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(
            "ix_warehouse_areas_active_name",
            "warehouse_areas",
            ["is_active", "name"],
            unique=False,
        )

    if not _table_exists(inspector, "warehouse_locations"):
        op.create_table(
            "warehouse_locations",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("area_id", sa.String(length=36), nullable=False),
            sa.Column("row_number", sa.Integer(), nullable=False),
            sa.Column("column_number", sa.Integer(), nullable=False),
            sa.Column("location_code", sa.String(length=30), nullable=False),
            sa.Column("capacity", sa.Integer(), nullable=False, server_default="100"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["area_id"], ["warehouse_areas.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("location_code"),
        )
        op.create_index(
            "ix_warehouse_locations_area_id",
            "warehouse_locations",
            ["area_id"],
            unique=False,
        )

    if not _table_exists(inspector, "products"):
        op.create_table(
            "products",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("sku", sa.String(length=100), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("category_id", sa.String(length=36), nullable=True),
            sa.Column("current_stock", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("min_stock", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("max_stock", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("unit_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
            sa.Column("expiration_date", sa.Date(), nullable=True),
            sa.Column("location_id", sa.String(length=36), nullable=True),
            sa.Column("manual_row", sa.Integer(), nullable=True),
            sa.Column("manual_column", sa.Integer(), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
            sa.ForeignKeyConstraint(["category_id"], ["categories.id"]),
            sa.ForeignKeyConstraint(["location_id"], ["warehouse_locations.id"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("sku"),
        )
        op.create_index("ix_products_category_id", "products", ["category_id"], unique=False)
        op.create_index("ix_products_location_id", "products", ["location_id"], unique=False)
        op.create_index("ix_products_created_at", "products", ["created_at"], unique=False)
        op.create_index("ix_products_expiration_date", "products", ["expiration_date"], unique=False)

    if not _table_exists(inspector, "stock_movements"):
        op.create_table(
            "stock_movements",
            sa.Column("id", sa.String(length=36), nullable=False),
            sa.Column("product_id", sa.String(length=36), nullable=False),
            sa.Column("movement_type", sa.String(length=20), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("qty_delta", sa.Integer(), nullable=False),
            sa.Column("reference_number", sa.String(length=100), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_by", sa.String(length=50), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.CheckConstraint("quantity > 0", name="ck_stock_movements_quantity_positive"),
            sa.CheckConstraint(
                "movement_type IN ('in', 'out', 'adjustment')",
                name="ck_stock_movements_movement_type",
            ),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_stock_movements_product_id", "stock_movements", ["product_id"], unique=False)
        op.create_index("ix_stock_movements_created_at", "stock_movements", ["created_at"], unique=False)
        op.create_index(
            "ix_stock_movements_product_created_at",
            "stock_movements",
            ["product_id", "created_at"],
            unique=False,
        )


def downgrade() -> None:
    op.drop_table("stock_movements")
    op.drop_table("products")
    op.drop_table("warehouse_locations")
    op.drop_table("warehouse_areas")
    op.drop_table("categories")
    op.drop_table("users")
