"""Initial booking core schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_ACTIVE_RESERVATION = sa.text("status IN ('pending', 'approved')")
_OPEN_BOOKING = sa.text("status IN ('pending', 'confirmed', 'active')")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _uuid_fk(name: str, target: str, *, nullable: bool = False, ondelete: str = "CASCADE"):
    return sa.Column(
        name,
        sa.Uuid(as_uuid=True),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=240), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column(
            "subscription_tier",
            sa.String(length=32),
            nullable=False,
            server_default="free",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "properties",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _uuid_fk("landlord_id", "users.id"),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("rent_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "allow_reservations", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "enable_downpayment",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column(
            "downpayment_amount",
            sa.Numeric(12, 2),
            nullable=False,
            server_default="0",
        ),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_properties_landlord_id", "properties", ["landlord_id"])

    op.create_table(
        "favorites",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _uuid_fk("tenant_id", "users.id"),
        _uuid_fk("property_id", "properties.id"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("tenant_id", "property_id", name="uq_favorites_pair"),
    )
    op.create_index("ix_favorites_tenant_id", "favorites", ["tenant_id"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _uuid_fk("property_id", "properties.id"),
        _uuid_fk("tenant_id", "users.id"),
        _uuid_fk("landlord_id", "users.id"),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("message", sa.Text()),
        sa.Column("rejection_reason", sa.String(length=1024)),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_reservations_tenant_id", "reservations", ["tenant_id"])
    op.create_index("ix_reservations_landlord_id", "reservations", ["landlord_id"])
    op.create_index(
        "ix_reservations_status_expiry", "reservations", ["status", "expiry_date"]
    )
    op.create_index(
        "uq_reservations_active_pair",
        "reservations",
        ["tenant_id", "property_id"],
        unique=True,
        sqlite_where=_ACTIVE_RESERVATION,
        postgresql_where=_ACTIVE_RESERVATION,
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        _uuid_fk("property_id", "properties.id"),
        _uuid_fk("tenant_id", "users.id"),
        _uuid_fk("landlord_id", "users.id"),
        _uuid_fk("reservation_id", "reservations.id", nullable=True, ondelete="SET NULL"),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("payment_type", sa.String(length=32), nullable=False),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "remaining_balance", sa.Numeric(12, 2), nullable=False, server_default="0"
        ),
        sa.Column("move_in_date", sa.Date(), nullable=False),
        sa.Column("duration_months", sa.Integer(), nullable=False),
        sa.Column("tenant_message", sa.Text()),
        *_timestamps(),
    )
    op.create_index("ix_bookings_tenant_id", "bookings", ["tenant_id"])
    op.create_index("ix_bookings_landlord_id", "bookings", ["landlord_id"])
    op.create_index(
        "uq_bookings_open_pair",
        "bookings",
        ["tenant_id", "property_id"],
        unique=True,
        sqlite_where=_OPEN_BOOKING,
        postgresql_where=_OPEN_BOOKING,
    )

    op.create_table(
        "escrow_transactions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "booking_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        _uuid_fk("property_id", "properties.id"),
        _uuid_fk("tenant_id", "users.id"),
        _uuid_fk("landlord_id", "users.id"),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("held_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("released_date", sa.DateTime(timezone=True)),
        sa.Column("refunded_date", sa.DateTime(timezone=True)),
        sa.Column("refund_reason", sa.String(length=1024)),
        *_timestamps(),
    )
    op.create_index(
        "ix_escrow_transactions_tenant_id", "escrow_transactions", ["tenant_id"]
    )
    op.create_index(
        "ix_escrow_transactions_landlord_id", "escrow_transactions", ["landlord_id"]
    )

    op.create_table(
        "domain_events",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("event_type", sa.String(length=120), nullable=False),
        sa.Column("entity_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("actor_id", sa.Uuid(as_uuid=True)),
        sa.Column("recipient_id", sa.Uuid(as_uuid=True)),
        sa.Column("payload", sa.JSON()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_domain_events_event_type", "domain_events", ["event_type"])
    op.create_index("ix_domain_events_entity_id", "domain_events", ["entity_id"])


def downgrade() -> None:
    op.drop_table("domain_events")
    op.drop_table("escrow_transactions")
    op.drop_table("bookings")
    op.drop_table("reservations")
    op.drop_table("favorites")
    op.drop_table("properties")
    op.drop_table("users")
