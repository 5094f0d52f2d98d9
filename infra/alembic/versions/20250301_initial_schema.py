"""Initial schema: customers, orders, segments and snapshots

Revision ID: 001_initial
Revises:
Create Date: 2025-03-01

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create customers table
    op.create_table(
        "customers",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=True),
        sa.Column("default_shipping_address", sa.JSON(), nullable=True),
        sa.Column("lifetime_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_active_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customers_email", "customers", ["email"])
    op.create_index("ix_customers_last_active_at", "customers", ["last_active_at"])

    # Create orders table
    op.create_table(
        "orders",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("customer_id", sa.UUID(), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("payment_status", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"])

    # Create customer_segments table
    op.create_table(
        "customer_segments",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("criteria", sa.JSON(), nullable=False),
        sa.Column("cached_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_calculated_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_customer_segments_created_at", "customer_segments", ["created_at"])

    # Snapshots keep no foreign key so history survives segment deletion
    op.create_table(
        "customer_segment_snapshots",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("segment_id", sa.UUID(), nullable=False),
        sa.Column("captured_at", sa.DateTime(), nullable=False),
        sa.Column("customer_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("average_value", sa.Float(), nullable=False, server_default="0"),
        sa.Column("top_location", sa.String(length=255), nullable=False),
        sa.Column("top_location_share", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("engagement_tier", sa.String(length=20), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_customer_segment_snapshots_segment_id", "customer_segment_snapshots", ["segment_id"]
    )
    op.create_index(
        "ix_customer_segment_snapshots_captured_at", "customer_segment_snapshots", ["captured_at"]
    )


def downgrade() -> None:
    op.drop_table("customer_segment_snapshots")
    op.drop_table("customer_segments")
    op.drop_table("orders")
    op.drop_table("customers")
