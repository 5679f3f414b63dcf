"""Typed access to organization rows.

Every call is a direct read or write against the session; nothing is cached.
"""

from collections.abc import Collection, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.exceptions import NotFoundError
from orgtree_api.models import Organization, OrganizationMember
from orgtree_api.models.enums import OrganizationType, PlanTier

# Sibling order used by every children query
CHILD_ORDER = (
    Organization.display_order.asc(),
    Organization.created_at.asc(),
    Organization.id.asc(),
)


async def get_organization(db: AsyncSession, org_id: str) -> Organization:
    """Get an organization by id.

    Raises:
        NotFoundError: If no organization has this id
    """
    org = await db.get(Organization, org_id)
    if org is None:
        raise NotFoundError("Organization not found")
    return org


async def find_children(
    db: AsyncSession,
    parent_id: str,
    org_types: Collection[OrganizationType] | None = None,
    plan_tiers: Collection[PlanTier] | None = None,
) -> list[Organization]:
    """Direct children of a parent, optionally filtered by type and plan."""
    query = select(Organization).where(Organization.parent_org_id == parent_id)

    if org_types:
        query = query.where(Organization.org_type.in_(list(org_types)))
    if plan_tiers:
        query = query.where(Organization.plan_tier.in_(list(plan_tiers)))

    result = await db.execute(query.order_by(*CHILD_ORDER))
    return list(result.scalars().all())


async def find_children_of_many(
    db: AsyncSession,
    parent_ids: Collection[str],
) -> list[Organization]:
    """Children of every parent in ``parent_ids``, in a single query."""
    if not parent_ids:
        return []
    result = await db.execute(
        select(Organization)
        .where(Organization.parent_org_id.in_(list(parent_ids)))
        .order_by(*CHILD_ORDER)
    )
    return list(result.scalars().all())


async def find_roots(db: AsyncSession) -> list[Organization]:
    """All organizations without a parent."""
    result = await db.execute(
        select(Organization)
        .where(Organization.parent_org_id.is_(None))
        .order_by(*CHILD_ORDER)
    )
    return list(result.scalars().all())


async def slug_exists(db: AsyncSession, slug: str) -> bool:
    result = await db.execute(
        select(func.count()).select_from(Organization).where(Organization.slug == slug)
    )
    return (result.scalar() or 0) > 0


async def domain_exists(db: AsyncSession, domain: str) -> bool:
    result = await db.execute(
        select(func.count())
        .select_from(Organization)
        .where(Organization.domain == domain)
    )
    return (result.scalar() or 0) > 0


async def exists_slug_or_domain(
    db: AsyncSession,
    slug: str,
    domain: str | None = None,
) -> bool:
    """True if any organization already uses the slug or (when given) the domain."""
    condition = Organization.slug == slug
    if domain:
        condition = or_(condition, Organization.domain == domain)
    result = await db.execute(
        select(func.count()).select_from(Organization).where(condition)
    )
    return (result.scalar() or 0) > 0


async def find_slugs_with_prefix(db: AsyncSession, base: str) -> set[str]:
    """Slugs equal to ``base`` or starting with ``base-``."""
    escaped = base.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    result = await db.execute(
        select(Organization.slug).where(
            or_(
                Organization.slug == base,
                Organization.slug.like(f"{escaped}-%", escape="\\"),
            )
        )
    )
    return set(result.scalars().all())


async def insert_organization(db: AsyncSession, org: Organization) -> Organization:
    """Add an organization to the session and flush it to get its id.

    The caller owns the transaction and must commit.
    """
    db.add(org)
    await db.flush()
    return org


async def aggregate_counts_by_type(
    db: AsyncSession,
    org_ids: Collection[str] | None = None,
) -> dict[OrganizationType, int]:
    """Organization counts per type, across all orgs or only ``org_ids``."""
    query = select(Organization.org_type, func.count(Organization.id)).group_by(
        Organization.org_type
    )
    if org_ids is not None:
        query = query.where(Organization.id.in_(list(org_ids)))
    result = await db.execute(query)
    return {org_type: count for org_type, count in result.all()}


async def count_children_by_parent(
    db: AsyncSession,
    parent_ids: Sequence[str],
) -> dict[str, int]:
    """Number of direct children per parent id (parents without children omitted)."""
    if not parent_ids:
        return {}
    result = await db.execute(
        select(Organization.parent_org_id, func.count(Organization.id))
        .where(Organization.parent_org_id.in_(list(parent_ids)))
        .group_by(Organization.parent_org_id)
    )
    return {parent_id: count for parent_id, count in result.all()}


async def count_members_by_org(
    db: AsyncSession,
    org_ids: Sequence[str],
) -> dict[str, int]:
    """Number of members per organization id (orgs without members omitted)."""
    if not org_ids:
        return {}
    result = await db.execute(
        select(OrganizationMember.organization_id, func.count(OrganizationMember.id))
        .where(OrganizationMember.organization_id.in_(list(org_ids)))
        .group_by(OrganizationMember.organization_id)
    )
    return {org_id: count for org_id, count in result.all()}
