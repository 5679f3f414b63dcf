"""Role permissions and effective-role resolution across the hierarchy."""

import enum
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.models import Organization, OrganizationMember, User
from orgtree_api.models.enums import OrganizationRole
from orgtree_api.services import hierarchy

ROLE_PERMISSIONS: dict[OrganizationRole, frozenset[str]] = {
    OrganizationRole.OWNER: frozenset({"hierarchy:*"}),
    OrganizationRole.ADMIN: frozenset({"hierarchy:read"}),
    OrganizationRole.MEMBER: frozenset(),
    OrganizationRole.VIEWER: frozenset(),
}

# Roles in an ancestor that grant a role in every descendant
INHERITABLE_ROLES: dict[OrganizationRole, OrganizationRole] = {
    OrganizationRole.OWNER: OrganizationRole.ADMIN,
    OrganizationRole.ADMIN: OrganizationRole.ADMIN,
}


class AccessSource(str, enum.Enum):
    """Where an effective role comes from."""

    SUPERADMIN = "superadmin"
    DIRECT = "direct"
    INHERITED = "inherited"
    NONE = "none"


@dataclass
class EffectiveRole:
    """Role a user holds in one organization."""

    org_id: str
    role: OrganizationRole | None
    source: AccessSource
    # Organization the role was granted in (an ancestor, when inherited)
    granted_by_org_id: str | None = None


def has_permission(role: OrganizationRole | None, action: str) -> bool:
    """True if ``role`` grants ``action`` (e.g. "hierarchy:write").

    A grant of "area:*" covers every action in that area.
    """
    if role is None:
        return False
    granted = ROLE_PERMISSIONS.get(role, frozenset())
    if action in granted:
        return True
    area = action.split(":", 1)[0]
    return f"{area}:*" in granted


def can_manage_hierarchy(role: OrganizationRole | None) -> bool:
    return has_permission(role, "hierarchy:write")


def can_read_hierarchy(role: OrganizationRole | None) -> bool:
    return has_permission(role, "hierarchy:read")


async def resolve_effective_role(
    db: AsyncSession,
    user: User,
    org: Organization,
) -> EffectiveRole:
    """Resolve the user's role in ``org``.

    Super-admins act as owners everywhere. Otherwise a direct membership
    wins; failing that, the nearest ancestor where the user is owner or
    admin grants an inherited admin role.
    """
    if user.is_superadmin:
        return EffectiveRole(
            org_id=org.id,
            role=OrganizationRole.OWNER,
            source=AccessSource.SUPERADMIN,
        )

    ancestors = await hierarchy.get_ancestors(db, org.id)
    candidate_ids = [org.id] + [ancestor.id for ancestor in ancestors]

    result = await db.execute(
        select(OrganizationMember).where(
            OrganizationMember.user_id == user.id,
            OrganizationMember.organization_id.in_(candidate_ids),
        )
    )
    roles = {m.organization_id: m.role for m in result.scalars().all()}

    if org.id in roles:
        return EffectiveRole(
            org_id=org.id,
            role=roles[org.id],
            source=AccessSource.DIRECT,
            granted_by_org_id=org.id,
        )

    for ancestor_id in candidate_ids[1:]:
        inherited = INHERITABLE_ROLES.get(roles.get(ancestor_id))
        if inherited is not None:
            return EffectiveRole(
                org_id=org.id,
                role=inherited,
                source=AccessSource.INHERITED,
                granted_by_org_id=ancestor_id,
            )

    return EffectiveRole(org_id=org.id, role=None, source=AccessSource.NONE)


@dataclass
class AccessibleOrganization:
    """An organization the user can see, and why."""

    organization: Organization
    role: OrganizationRole
    source: AccessSource
    granted_by_org_id: str


async def get_accessible_organizations(
    db: AsyncSession,
    user: User,
) -> list[AccessibleOrganization]:
    """Direct memberships plus every descendant of an OWNER/ADMIN membership.

    A direct membership wins over an inherited one. Among inherited
    grants the nearest ancestor wins. Ordered by level, then name.
    """
    result = await db.execute(
        select(OrganizationMember, Organization)
        .join(Organization, OrganizationMember.organization_id == Organization.id)
        .where(OrganizationMember.user_id == user.id)
        .order_by(Organization.hierarchy_level.desc())
    )
    memberships = result.all()

    accessible = {
        org.id: AccessibleOrganization(
            organization=org,
            role=membership.role,
            source=AccessSource.DIRECT,
            granted_by_org_id=org.id,
        )
        for membership, org in memberships
    }

    # Deepest grants first, so the nearest ancestor claims each descendant
    for membership, org in memberships:
        if not membership.grants_descendant_access:
            continue
        for descendant in await hierarchy.list_descendants(db, org.id):
            if descendant.id in accessible:
                continue
            accessible[descendant.id] = AccessibleOrganization(
                organization=descendant,
                role=INHERITABLE_ROLES[membership.role],
                source=AccessSource.INHERITED,
                granted_by_org_id=org.id,
            )

    return sorted(
        accessible.values(),
        key=lambda a: (a.organization.hierarchy_level, a.organization.name),
    )
