"""Create organizations, users and actas

Revision ID: 4f1c2a9b7d10
Revises:
Create Date: 2026-10-17 10:12:31.402118

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "4f1c2a9b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns():
    return [
        sa.Column(
            "created_by", sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL", onupdate="CASCADE"),
            nullable=True, comment="User who created this record",
        ),
        sa.Column(
            "created_on", sa.DateTime(timezone=True), server_default=sa.func.now(),
            comment="Timestamp when this record was created",
        ),
        sa.Column(
            "updated_on", sa.DateTime(timezone=True), server_default=sa.func.now(),
            comment="Timestamp when this record was last updated",
        ),
        sa.Column(
            "is_active", sa.Boolean(), nullable=True,
            comment="Flag to keep track of record is active or not",
        ),
    ]


def upgrade():
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(128), nullable=False, unique=True),
        sa.Column("created_on", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email_address", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("password", sa.String(255), nullable=True),
        sa.Column(
            "organization_id", sa.String(64),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("role", sa.String(32), nullable=False, server_default="member"),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_audit_columns(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email_address", "users", ["email_address"], unique=True)
    op.create_index("ix_users_organization_id", "users", ["organization_id"])

    op.create_table(
        "actas",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "organization_id", sa.String(64),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False,
            comment="Tenant that owns the acta",
        ),
        sa.Column(
            "status", sa.String(32), nullable=False, server_default="draft",
            comment="draft, pending_signatures or completed",
        ),
        sa.Column("meeting_info", sa.JSON(), nullable=False),
        sa.Column("attendees", sa.JSON(), nullable=False),
        sa.Column("agenda", sa.JSON(), nullable=False),
        sa.Column("raw_content", sa.Text(), nullable=False),
        sa.Column("generated_content", sa.JSON(), nullable=True),
        sa.Column("audio_url", sa.String(2048), nullable=True),
        sa.Column("pdf_url", sa.String(2048), nullable=True),
        sa.Column("signature_request_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "version", sa.Integer(), nullable=False, server_default="1",
            comment="Optimistic concurrency stamp, incremented on every write",
        ),
        *_audit_columns(),
    )
    op.create_index("ix_actas_organization_id", "actas", ["organization_id"])
    op.create_index("ix_actas_organization_created", "actas", ["organization_id", "created_on"])


def downgrade():
    op.drop_index("ix_actas_organization_created", table_name="actas")
    op.drop_index("ix_actas_organization_id", table_name="actas")
    op.drop_table("actas")
    op.drop_index("ix_users_organization_id", table_name="users")
    op.drop_index("ix_users_email_address", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
    op.drop_table("organizations")
