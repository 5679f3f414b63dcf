"""Organization model for the multi-tenant hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orgtree_api.models.base import Base, TimestampMixin, generate_uuid
from orgtree_api.models.enums import CompanySize, OrganizationType, PlanTier

if TYPE_CHECKING:
    from orgtree_api.models.organization_member import OrganizationMember
    from orgtree_api.models.user import User


class Organization(Base, TimestampMixin):
    """Tenant entity and node of an organization tree.

    Roots have no parent and hierarchy_level 0; every other node sits exactly
    one level below its parent.
    """

    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
        index=True,
    )
    # Nullable-unique: any number of orgs may have no domain
    domain: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
    )
    org_type: Mapped[OrganizationType] = mapped_column(
        Enum(OrganizationType),
        nullable=False,
        default=OrganizationType.STANDARD,
    )

    # Hierarchy
    parent_org_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    hierarchy_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    allow_child_orgs: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Commercial / profile
    plan_tier: Mapped[PlanTier] = mapped_column(
        Enum(PlanTier),
        nullable=False,
        default=PlanTier.STARTER,
    )
    industry: Mapped[str | None] = mapped_column(String(255))
    company_size: Mapped[CompanySize | None] = mapped_column(Enum(CompanySize))
    country: Mapped[str | None] = mapped_column(String(64))
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")
    logo_url: Mapped[str | None] = mapped_column(String(2048))
    brand_color: Mapped[str | None] = mapped_column(String(32))

    # Settings bag; copied from the parent once, at creation time
    settings: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )
    inherit_settings: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    created_by_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Relationships
    created_by: Mapped[User | None] = relationship()
    members: Mapped[list[OrganizationMember]] = relationship(
        back_populates="organization",
        cascade="all, delete-orphan",
    )
