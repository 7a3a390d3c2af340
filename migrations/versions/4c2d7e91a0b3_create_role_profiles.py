"""create_role_profiles

Revision ID: 4c2d7e91a0b3
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "4c2d7e91a0b3"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create role_profiles document table."""
    op.create_table(
        "role_profiles",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("owner_id", sa.UUID(), nullable=False),
        sa.Column("variant", sa.String(length=20), nullable=False),
        sa.Column(
            "document",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id", "variant", name="uq_role_profiles_owner_variant"),
        sa.CheckConstraint(
            "variant IN ('viewer', 'curator', 'admin')",
            name="ck_role_profiles_variant",
        ),
    )
    op.create_index(
        "ix_role_profiles_owner_id",
        "role_profiles",
        ["owner_id"],
        unique=False,
    )


def downgrade() -> None:
    """Drop role_profiles table."""
    op.drop_index("ix_role_profiles_owner_id", table_name="role_profiles")
    op.drop_table("role_profiles")
