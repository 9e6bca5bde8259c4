"""Create claims table.

Revision ID: 001
Revises:
Create Date: 2025-07-02

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the claims table, its indexes and the updated_at trigger."""
    op.create_table(
        "claims",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("claim_number", sa.String(50), nullable=False),
        sa.Column("policy_number", sa.String(50), nullable=False),
        sa.Column("claimant_name", sa.String(100), nullable=False),
        sa.Column("claimant_email", sa.String(100), nullable=False),
        sa.Column("claimant_phone", sa.String(20), nullable=True),
        sa.Column("description", sa.String(1000), nullable=False),
        sa.Column("claim_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="SUBMITTED"),
        sa.Column("incident_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_claims")),
        sa.UniqueConstraint("claim_number", name=op.f("uq_claims_claim_number")),
        sa.CheckConstraint(
            "status IN ('SUBMITTED', 'UNDER_REVIEW', 'APPROVED', "
            "'REJECTED', 'PAID', 'CANCELLED')",
            name=op.f("ck_claims_status"),
        ),
        sa.CheckConstraint(
            "claim_amount > 0", name=op.f("ck_claims_claim_amount_positive")
        ),
    )

    # Lookup indexes for the search endpoints
    for column in ["policy_number", "status", "claimant_email", "created_at"]:
        op.create_index(
            op.f(f"ix_claims_{column}"),
            "claims",
            [column],
            unique=False,
        )

    # Create update timestamp trigger
    op.execute(
        """
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = CURRENT_TIMESTAMP;
            RETURN NEW;
        END;
        $$ language 'plpgsql';
        """
    )
    op.execute(
        """
        CREATE TRIGGER update_claims_updated_at
        BEFORE UPDATE ON claims
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
        """
    )


def downgrade() -> None:
    """Drop the claims table and its trigger function."""
    op.execute("DROP TRIGGER IF EXISTS update_claims_updated_at ON claims;")
    op.execute("DROP FUNCTION IF EXISTS update_updated_at_column();")

    for column in ["policy_number", "status", "claimant_email", "created_at"]:
        op.drop_index(op.f(f"ix_claims_{column}"), table_name="claims")
    op.drop_table("claims")
