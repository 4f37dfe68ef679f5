"""Create users, vouchers and user_vouchers tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # =========================================================================
    # users
    # =========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(100), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # =========================================================================
    # vouchers
    # =========================================================================
    op.create_table(
        "vouchers",
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("discount", sa.Integer(), nullable=False),
        sa.Column(
            "is_percentage", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        sa.Column("min_spend", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("category", sa.String(100), nullable=False, server_default=""),
        sa.Column("starts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires", sa.DateTime(timezone=True), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("usage_limit", sa.Integer(), nullable=False),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("code", name="pk_vouchers"),
        sa.CheckConstraint(
            "usage_count >= 0 AND usage_count <= usage_limit",
            name="ck_vouchers_usage_count",
        ),
    )
    op.create_index("ix_vouchers_min_spend", "vouchers", ["min_spend"])
    op.create_index("ix_vouchers_category", "vouchers", ["category"])
    op.create_index("ix_vouchers_starts", "vouchers", ["starts"])
    op.create_index("ix_vouchers_expires", "vouchers", ["expires"])
    op.create_index("ix_vouchers_active", "vouchers", ["active"])

    # =========================================================================
    # user_vouchers (entitlements)
    # =========================================================================
    op.create_table(
        "user_vouchers",
        sa.Column("user_id", sa.String(32), nullable=False),
        sa.Column("voucher_code", sa.String(20), nullable=False),
        sa.Column("remaining_uses", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("user_id", "voucher_code", name="pk_user_vouchers"),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name="fk_user_vouchers_user_id_users",
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "remaining_uses >= 0", name="ck_user_vouchers_remaining_uses"
        ),
    )


def downgrade() -> None:
    op.drop_table("user_vouchers")

    op.drop_index("ix_vouchers_active", table_name="vouchers")
    op.drop_index("ix_vouchers_expires", table_name="vouchers")
    op.drop_index("ix_vouchers_starts", table_name="vouchers")
    op.drop_index("ix_vouchers_category", table_name="vouchers")
    op.drop_index("ix_vouchers_min_spend", table_name="vouchers")
    op.drop_table("vouchers")

    op.drop_table("users")
