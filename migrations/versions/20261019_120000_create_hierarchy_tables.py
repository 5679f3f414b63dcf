"""Create organization hierarchy tables.

Includes User, Organization (self-referencing tree), OrganizationMember and
HierarchyAuditLog tables.

Revision ID: 001_hierarchy
Revises:
Create Date: 2026-10-19 12:00:00

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_hierarchy"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ORGANIZATION_TYPES = (
    "STANDARD",
    "AGENCY",
    "HOLDING_COMPANY",
    "SUBSIDIARY",
    "BRAND",
    "SUB_BRAND",
    "DIVISION",
    "DEPARTMENT",
    "FRANCHISE",
    "FRANCHISEE",
    "RESELLER",
    "CLIENT",
    "REGIONAL",
    "PORTFOLIO_COMPANY",
)


def upgrade() -> None:
    """Create hierarchy schema."""
    # Users
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column(
            "is_superadmin", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Organizations (parent_org_id forms the tree)
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(64), unique=True, nullable=False, index=True),
        sa.Column("domain", sa.String(255), unique=True, nullable=True),
        sa.Column(
            "org_type",
            sa.Enum(*ORGANIZATION_TYPES, name="organizationtype"),
            nullable=False,
            server_default="STANDARD",
        ),
        sa.Column(
            "parent_org_id",
            sa.String(36),
            sa.ForeignKey("organizations.id", ondelete="RESTRICT"),
            nullable=True,
            index=True,
        ),
        sa.Column("hierarchy_level", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "allow_child_orgs", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("display_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "plan_tier",
            sa.Enum("STARTER", "PROFESSIONAL", "ENTERPRISE", name="plantier"),
            nullable=False,
            server_default="STARTER",
        ),
        sa.Column("industry", sa.String(255), nullable=True),
        sa.Column(
            "company_size",
            sa.Enum(
                "SOLO",
                "SMALL",
                "MEDIUM",
                "LARGE",
                "ENTERPRISE",
                "GLOBAL",
                name="companysize",
            ),
            nullable=True,
        ),
        sa.Column("country", sa.String(64), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("logo_url", sa.String(2048), nullable=True),
        sa.Column("brand_color", sa.String(32), nullable=True),
        sa.Column("settings", sa.JSON, nullable=False),
        sa.Column(
            "inherit_settings", sa.Boolean, nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "created_by_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Organization Members (junction table with roles)
    op.create_table(
        "organization_members",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "organization_id",
            sa.String(36),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column(
            "user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "role",
            sa.Enum("OWNER", "ADMIN", "MEMBER", "VIEWER", name="organizationrole"),
            nullable=False,
            server_default="MEMBER",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint(
            "organization_id", "user_id", name="uq_organization_members_org_user"
        ),
    )
    op.create_index(
        "ix_organization_members_user_role",
        "organization_members",
        ["user_id", "role"],
    )

    # Hierarchy audit log (org_id has no FK so rows survive deletion)
    op.create_table(
        "hierarchy_audit_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("org_id", sa.String(36), nullable=False, index=True),
        sa.Column(
            "actor_user_id",
            sa.String(36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
        sa.Column("actor_org_id", sa.String(36), nullable=True),
        sa.Column(
            "action",
            sa.Enum(
                "ORG_CREATED",
                "ORG_MOVED",
                "ORG_UPDATED",
                "ORG_DELETED",
                name="hierarchyaction",
            ),
            nullable=False,
        ),
        sa.Column("target_org_id", sa.String(36), nullable=True),
        sa.Column("previous_state", sa.JSON, nullable=True),
        sa.Column("new_state", sa.JSON, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )


def downgrade() -> None:
    """Drop hierarchy schema."""
    op.drop_table("hierarchy_audit_logs")
    op.drop_table("organization_members")
    op.drop_table("organizations")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS hierarchyaction")
    op.execute("DROP TYPE IF EXISTS organizationrole")
    op.execute("DROP TYPE IF EXISTS companysize")
    op.execute("DROP TYPE IF EXISTS plantier")
    op.execute("DROP TYPE IF EXISTS organizationtype")
