"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2024-03-01 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


class GUID(sa.TypeDecorator):
    impl = sa.CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(sa.CHAR(36))


def _master_table(name: str, *extra_columns: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        *extra_columns,
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )


def upgrade() -> None:
    _master_table("branches", sa.Column("address", sa.String(length=500), nullable=False, server_default=""))
    _master_table("warehouses", sa.Column("address", sa.String(length=500), nullable=False, server_default=""))
    _master_table(
        "ports",
        sa.Column("address", sa.String(length=500), nullable=False, server_default=""),
        sa.Column("country", sa.String(length=100), nullable=False, server_default=""),
    )
    _master_table("carriers", sa.Column("contact_info", sa.String(length=500), nullable=False, server_default=""))
    op.create_table(
        "clients",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("user_id", GUID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone_number", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_clients_user_id", "clients", ["user_id"], unique=True)

    op.create_table(
        "batches",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("branch_id", GUID(), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=40), nullable=False, server_default="Draft"),
        sa.Column("shipment_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_weight", sa.Numeric(14, 3), nullable=False, server_default="0"),
        sa.Column("threshold_count", sa.Integer(), nullable=False),
        sa.Column("threshold_weight", sa.Numeric(14, 3), nullable=False),
        sa.Column("source_warehouse_id", GUID(), sa.ForeignKey("warehouses.id"), nullable=True),
        sa.Column("destination_warehouse_id", GUID(), sa.ForeignKey("warehouses.id"), nullable=True),
        sa.Column("source_port_id", GUID(), sa.ForeignKey("ports.id"), nullable=True),
        sa.Column("destination_port_id", GUID(), sa.ForeignKey("ports.id"), nullable=True),
        sa.Column("carrier_assigned_at", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_batches_branch_id", "batches", ["branch_id"], unique=False)
    op.create_index("ix_batches_status", "batches", ["status"], unique=False)
    op.create_index("ix_batches_branch_status", "batches", ["branch_id", "status"], unique=False)

    op.create_table(
        "shipments",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("client_id", GUID(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("batch_id", GUID(), sa.ForeignKey("batches.id"), nullable=True),
        sa.Column("status", sa.String(length=40), nullable=False, server_default="Created"),
        sa.Column("weight", sa.Numeric(14, 3), nullable=False),
        sa.Column("volume", sa.Numeric(14, 3), nullable=True),
        sa.Column("pickup_address", sa.String(length=500), nullable=False),
        sa.Column("delivery_address", sa.String(length=500), nullable=False),
        sa.Column("carrier_id", GUID(), sa.ForeignKey("carriers.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_shipments_client_id", "shipments", ["client_id"], unique=False)
    op.create_index("ix_shipments_batch_id", "shipments", ["batch_id"], unique=False)
    op.create_index("ix_shipments_status", "shipments", ["status"], unique=False)
    op.create_index("ix_shipments_carrier_id", "shipments", ["carrier_id"], unique=False)

    op.create_table(
        "shipment_events",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("shipment_id", GUID(), sa.ForeignKey("shipments.id"), nullable=False),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("actor_user_id", sa.String(length=64), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_shipment_events_shipment_created",
        "shipment_events",
        ["shipment_id", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_shipment_events_shipment_created", table_name="shipment_events")
    op.drop_table("shipment_events")
    op.drop_index("ix_shipments_carrier_id", table_name="shipments")
    op.drop_index("ix_shipments_status", table_name="shipments")
    op.drop_index("ix_shipments_batch_id", table_name="shipments")
    op.drop_index("ix_shipments_client_id", table_name="shipments")
    op.drop_table("shipments")
    op.drop_index("ix_batches_branch_status", table_name="batches")
    op.drop_index("ix_batches_status", table_name="batches")
    op.drop_index("ix_batches_branch_id", table_name="batches")
    op.drop_table("batches")
    op.drop_index("ix_clients_user_id", table_name="clients")
    op.drop_table("clients")
    op.drop_table("carriers")
    op.drop_table("ports")
    op.drop_table("warehouses")
    op.drop_table("branches")
