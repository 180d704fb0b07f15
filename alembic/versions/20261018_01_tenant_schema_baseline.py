"""Tenant schema baseline

Revision ID: 20261018_01
Revises: None
Create Date: 2026-10-18
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "app_user",
        sa.Column("user_id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("email", name="uq_app_user_email"),
    )

    op.create_table(
        "organization",
        sa.Column("organization_id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("slug", sa.Text(), nullable=False),
        sa.Column("plan", sa.Text(), nullable=False, server_default=sa.text("'free'")),
        sa.Column("created_by_user_id", sa.BigInteger(), sa.ForeignKey("app_user.user_id"), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("slug", name="uq_organization_slug"),
        sa.CheckConstraint("plan in ('free', 'pro', 'enterprise')", name="ck_organization_plan"),
    )

    op.create_table(
        "organization_member",
        sa.Column("member_id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column(
            "organization_id",
            sa.BigInteger(),
            sa.ForeignKey("organization.organization_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("app_user.user_id", ondelete="CASCADE"), nullable=False),
        sa.Column("role", sa.Text(), nullable=False, server_default=sa.text("'member'")),
        sa.Column("status", sa.Text(), nullable=False, server_default=sa.text("'active'")),
        sa.Column("invited_by_user_id", sa.BigInteger(), sa.ForeignKey("app_user.user_id"), nullable=True),
        sa.Column("accepted_at_utc", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("organization_id", "user_id", name="uq_organization_member_org_user"),
        sa.CheckConstraint("role in ('owner', 'admin', 'member')", name="ck_organization_member_role"),
        sa.CheckConstraint("status in ('active', 'inactive', 'pending')", name="ck_organization_member_status"),
    )
    op.create_index("ix_organization_member_user_id", "organization_member", ["user_id"])

    op.create_table(
        "organization_invitation",
        sa.Column("invitation_id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column(
            "organization_id",
            sa.BigInteger(),
            sa.ForeignKey("organization.organization_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("role", sa.Text(), nullable=False, server_default=sa.text("'member'")),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("invited_by_user_id", sa.BigInteger(), sa.ForeignKey("app_user.user_id"), nullable=False),
        sa.Column("expires_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_at_utc", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("token", name="uq_organization_invitation_token"),
        sa.CheckConstraint("role in ('owner', 'admin', 'member')", name="ck_organization_invitation_role"),
    )
    op.create_index(
        "ix_organization_invitation_org_email",
        "organization_invitation",
        ["organization_id", "email"],
    )
    op.create_index("ix_organization_invitation_expires_at_utc", "organization_invitation", ["expires_at_utc"])

    op.create_table(
        "stored_file",
        sa.Column("file_id", sa.BigInteger(), sa.Identity(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("app_user.user_id", ondelete="SET NULL"), nullable=True),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("content_type", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("storage_type", sa.Text(), nullable=False, server_default=sa.text("'local'")),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("file_size >= 0", name="ck_stored_file_size_non_negative"),
    )
    op.create_index("ix_stored_file_user_id", "stored_file", ["user_id"])
    op.create_index("ix_stored_file_created_at_utc", "stored_file", ["created_at_utc"])

    op.create_table(
        "user_preferences",
        sa.Column(
            "user_id",
            sa.BigInteger(),
            sa.ForeignKey("app_user.user_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("theme", sa.Text(), nullable=False, server_default=sa.text("'system'")),
        sa.Column("timezone", sa.Text(), nullable=False, server_default=sa.text("'UTC'")),
        sa.Column("language", sa.Text(), nullable=False, server_default=sa.text("'en'")),
        sa.Column("date_format", sa.Text(), nullable=False, server_default=sa.text("'MM/DD/YYYY'")),
        sa.Column("time_format", sa.Text(), nullable=False, server_default=sa.text("'12h'")),
        sa.Column("email_marketing", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_security", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_updates", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_weekly_digest", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("theme in ('light', 'dark', 'system')", name="ck_user_preferences_theme"),
        sa.CheckConstraint("time_format in ('12h', '24h')", name="ck_user_preferences_time_format"),
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("user_preferences")

    op.drop_index("ix_stored_file_created_at_utc", table_name="stored_file")
    op.drop_index("ix_stored_file_user_id", table_name="stored_file")
    op.drop_table("stored_file")

    op.drop_index("ix_organization_invitation_expires_at_utc", table_name="organization_invitation")
    op.drop_index("ix_organization_invitation_org_email", table_name="organization_invitation")
    op.drop_table("organization_invitation")

    op.drop_index("ix_organization_member_user_id", table_name="organization_member")
    op.drop_table("organization_member")

    op.drop_table("organization")
    op.drop_table("app_user")
