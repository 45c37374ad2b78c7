"""Initial schema: seat tier ledger, registrants, relationships.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Seat tier ledger: one row per configured tier, seeded at app startup
    op.create_table(
        "seat_tiers",
        sa.Column("level", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("admitted", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("capacity >= 0", name="check_tier_capacity_non_negative"),
        sa.CheckConstraint("admitted >= 0", name="check_tier_admitted_non_negative"),
        # NO OVERSELL: the guarded UPDATE already refuses a full tier,
        # this constraint rejects anything that bypasses it.
        sa.CheckConstraint("admitted <= capacity", name="check_tier_admitted_lte_capacity"),
    )

    # Registrants
    op.create_table(
        "registrants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("drinks_alcohol", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("requested_tier", sa.Integer(), nullable=False),
        sa.Column("effective_tier", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("name", name="uq_registrants_name"),
        sa.UniqueConstraint("email", name="uq_registrants_email"),
        sa.CheckConstraint("effective_tier <= requested_tier", name="check_monotone_cascade"),
    )
    op.create_index("ix_registrants_id", "registrants", ["id"])
    # The tier report groups by both tier columns on every dashboard load
    op.create_index("ix_registrants_effective_tier", "registrants", ["effective_tier"])
    op.create_index("ix_registrants_requested_tier", "registrants", ["requested_tier"])

    # Familiarity relationships
    op.create_table(
        "relationships",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("new_registrant_id", sa.Integer(), sa.ForeignKey("registrants.id"), nullable=False),
        sa.Column("known_registrant_id", sa.Integer(), sa.ForeignKey("registrants.id"), nullable=False),
        sa.Column("knows_person", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("new_registrant_id", "known_registrant_id", name="uq_relationship_pair"),
    )
    op.create_index("ix_relationships_id", "relationships", ["id"])
    op.create_index("ix_relationships_new_registrant_id", "relationships", ["new_registrant_id"])
    op.create_index("ix_relationships_known_registrant_id", "relationships", ["known_registrant_id"])


def downgrade() -> None:
    op.drop_table("relationships")
    op.drop_table("registrants")
    op.drop_table("seat_tiers")
