"""create claims table

Revision ID: b4c2d3e5f6a7
Revises: a3f1c2d4e5b6
Create Date: 2026-10-19 00:00:01.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "b4c2d3e5f6a7"
down_revision = "a3f1c2d4e5b6"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "claims",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("fingerprint", sa.String(length=255), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=False),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("coupon_id", sa.String(length=36), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["coupon_id"], ["coupons.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("coupon_id"),
    )
    op.create_index("ix_claims_fingerprint", "claims", ["fingerprint"])
    op.create_index("ix_claims_ip_address", "claims", ["ip_address"])
    op.create_index("ix_claims_claimed_at", "claims", ["claimed_at"])


def downgrade() -> None:
    op.drop_index("ix_claims_claimed_at", table_name="claims")
    op.drop_index("ix_claims_ip_address", table_name="claims")
    op.drop_index("ix_claims_fingerprint", table_name="claims")
    op.drop_table("claims")
