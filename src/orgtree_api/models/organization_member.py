"""Direct role grants of users on organizations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from orgtree_api.models.base import Base, TimestampMixin, generate_uuid
from orgtree_api.models.enums import OrganizationRole

if TYPE_CHECKING:
    from orgtree_api.models.organization import Organization
    from orgtree_api.models.user import User

# Direct roles that also grant read access to every descendant
HIERARCHY_GRANTING_ROLES = (OrganizationRole.OWNER, OrganizationRole.ADMIN)


class OrganizationMember(Base, TimestampMixin):
    """A user's direct role in one organization of a hierarchy.

    Only direct grants are stored. Access to descendants is derived at
    request time from OWNER/ADMIN rows on ancestors, so moving a subtree
    never requires rewriting memberships. A row is removed with its
    organization; created_at is when the user joined.
    """

    __tablename__ = "organization_members"
    __table_args__ = (
        UniqueConstraint(
            "organization_id", "user_id", name="uq_organization_members_org_user"
        ),
        # Lookup of the memberships a user's inherited access starts from
        Index("ix_organization_members_user_role", "user_id", "role"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    role: Mapped[OrganizationRole] = mapped_column(
        Enum(OrganizationRole),
        nullable=False,
        default=OrganizationRole.MEMBER,
    )

    organization: Mapped[Organization] = relationship(back_populates="members")
    user: Mapped[User] = relationship(back_populates="memberships")

    @property
    def grants_descendant_access(self) -> bool:
        return self.role in HIERARCHY_GRANTING_ROLES
