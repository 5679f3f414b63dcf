"""Organization hierarchy routes (requires auth)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.auth import (
    EffectiveRole,
    can_manage_hierarchy,
    get_current_user,
    require_hierarchy_access,
    require_superadmin,
)
from orgtree_api.db import get_db
from orgtree_api.exceptions import PermissionDeniedError
from orgtree_api.models import Organization, User
from orgtree_api.models.enums import OrganizationType, PlanTier
from orgtree_api.schemas import (
    ChildOrganizationCreate,
    ChildOrganizationCreateWithParent,
    ChildrenResponse,
    HierarchyMeta,
    HierarchyNodeResponse,
    HierarchyOverviewMeta,
    HierarchyOverviewResponse,
    HierarchyStatsResponse,
    HierarchyTreeResponse,
    IntegrityReportResponse,
    OrganizationListResponse,
    OrganizationMove,
    OrganizationResponse,
    OrganizationUpdate,
)
from orgtree_api.services import (
    ChildOrganizationInput,
    check_child_input,
    create_child_organization,
    delete_organization,
    get_recommended_child_types,
    hierarchy,
    move_organization,
    org_store,
    update_organization,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/hierarchy", tags=["hierarchy"])


# --- Helper functions ---


async def build_hierarchy_meta(
    db: AsyncSession,
    org: Organization,
    effective: EffectiveRole,
) -> HierarchyMeta:
    """What the requesting user may do at ``org``."""
    can_create = (
        org.allow_child_orgs
        and can_manage_hierarchy(effective.role)
        and not await hierarchy.would_exceed_max_depth(db, org.id)
    )
    return HierarchyMeta(
        can_create_children=can_create,
        recommended_child_types=get_recommended_child_types(org.org_type),
        effective_role=effective.role,
        access_source=effective.source,
    )


async def _create_child(
    db: AsyncSession,
    current_user: User,
    parent_org_id: str,
    data: ChildOrganizationCreate,
) -> Organization:
    actor_id = current_user.id
    fields = ChildOrganizationInput(**data.model_dump(exclude={"parent_org_id"}))
    # Malformed input is reported before the parent is looked up
    check_child_input(fields)
    await require_hierarchy_access(db, current_user, parent_org_id, manage=True)

    return await create_child_organization(db, parent_org_id, fields, actor_id)


# --- Overview ---


@router.get("", response_model=HierarchyOverviewResponse)
async def get_hierarchy_overview(
    _: Annotated[User, Depends(require_superadmin)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List every root organization with global counts (super-admin only)."""
    roots = await org_store.find_roots(db)
    counts = await org_store.aggregate_counts_by_type(db)

    return HierarchyOverviewResponse(
        data=[OrganizationResponse.model_validate(org) for org in roots],
        meta=HierarchyOverviewMeta(
            total_orgs=sum(counts.values()),
            orgs_by_type=counts,
        ),
    )


@router.post(
    "", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED
)
async def create_child_organization_in_body(
    data: ChildOrganizationCreateWithParent,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create a child organization under ``parentOrgId`` from the body."""
    return await _create_child(db, current_user, data.parent_org_id, data)


# --- Tree reads ---


@router.get("/{org_id}", response_model=HierarchyTreeResponse)
async def get_hierarchy(
    org_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    max_depth: Annotated[int | None, Query(alias="maxDepth", ge=0)] = None,
):
    """Get the hierarchy tree below an organization."""
    org, effective = await require_hierarchy_access(db, current_user, org_id)

    tree = await hierarchy.get_hierarchy_tree(db, org.id, max_depth)
    meta = await build_hierarchy_meta(db, org, effective)

    return HierarchyTreeResponse(
        data=HierarchyNodeResponse.model_validate(tree),
        meta=meta,
    )


@router.get("/{org_id}/children", response_model=ChildrenResponse)
async def list_children(
    org_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    org_types: Annotated[list[OrganizationType] | None, Query(alias="orgTypes")] = None,
    plan_tiers: Annotated[list[PlanTier] | None, Query(alias="planTiers")] = None,
):
    """List direct children, optionally filtered by type and plan tier."""
    org, effective = await require_hierarchy_access(db, current_user, org_id)

    children = await hierarchy.get_direct_children(
        db, org.id, org_types=org_types, plan_tiers=plan_tiers
    )
    meta = await build_hierarchy_meta(db, org, effective)

    return ChildrenResponse(
        data=[OrganizationResponse.model_validate(child) for child in children],
        meta=meta,
    )


@router.post(
    "/{org_id}/children",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_child(
    org_id: str,
    data: ChildOrganizationCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create a child organization (hierarchy:write on the parent)."""
    return await _create_child(db, current_user, org_id, data)


@router.get("/{org_id}/ancestors", response_model=OrganizationListResponse)
async def list_ancestors(
    org_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List ancestors from the immediate parent up to the root."""
    org, _ = await require_hierarchy_access(db, current_user, org_id)

    ancestors = await hierarchy.get_ancestors(db, org.id)
    return OrganizationListResponse(
        data=[OrganizationResponse.model_validate(a) for a in ancestors]
    )


@router.get("/{org_id}/siblings", response_model=OrganizationListResponse)
async def list_siblings(
    org_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List the other children of the organization's parent.

    Siblings of a root are the other roots, which only super-admins see.
    """
    org, _ = await require_hierarchy_access(db, current_user, org_id)
    if org.parent_org_id is None and not current_user.is_superadmin:
        return OrganizationListResponse(data=[])

    siblings = await hierarchy.get_siblings(db, org.id)
    return OrganizationListResponse(
        data=[OrganizationResponse.model_validate(s) for s in siblings]
    )


@router.get("/{org_id}/descendants", response_model=OrganizationListResponse)
async def list_descendants(
    org_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    org_types: Annotated[list[OrganizationType] | None, Query(alias="orgTypes")] = None,
    max_depth: Annotated[int | None, Query(alias="maxDepth", ge=0)] = None,
):
    """Flat list of descendants, shallowest first, optionally filtered by type."""
    org, _ = await require_hierarchy_access(db, current_user, org_id)

    descendants = await hierarchy.list_descendants(
        db, org.id, max_depth=max_depth, org_types=org_types
    )
    return OrganizationListResponse(
        data=[OrganizationResponse.model_validate(d) for d in descendants]
    )


@router.get("/{org_id}/stats", response_model=HierarchyStatsResponse)
async def get_stats(
    org_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Get counts by type and level for an organization's subtree."""
    org, _ = await require_hierarchy_access(db, current_user, org_id)

    stats = await hierarchy.get_hierarchy_stats(db, org.id)
    return HierarchyStatsResponse.model_validate(stats)


@router.get("/{org_id}/integrity", response_model=IntegrityReportResponse)
async def check_integrity(
    org_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Check an organization against the tree invariants."""
    org, _ = await require_hierarchy_access(db, current_user, org_id)

    report = await hierarchy.validate_hierarchy_integrity(db, org.id)
    if not report.valid:
        logger.warning(
            "Integrity issues for organization %s: %s", org.id, report.issues
        )
    return IntegrityReportResponse.model_validate(report)


# --- Mutations ---


@router.patch("/{org_id}", response_model=OrganizationResponse)
async def update_org(
    org_id: str,
    data: OrganizationUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Update an organization (hierarchy:write)."""
    actor_id = current_user.id
    org, _ = await require_hierarchy_access(db, current_user, org_id, manage=True)

    return await update_organization(
        db, org.id, data.model_dump(exclude_unset=True), actor_id
    )


@router.post("/{org_id}/move", response_model=OrganizationResponse)
async def move_org(
    org_id: str,
    data: OrganizationMove,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Re-parent an organization and its subtree.

    Requires hierarchy:write on the organization and on the new parent.
    Only super-admins may turn an organization into a root.
    """
    actor_id = current_user.id
    org, _ = await require_hierarchy_access(db, current_user, org_id, manage=True)

    if data.new_parent_org_id is None:
        if not current_user.is_superadmin:
            raise PermissionDeniedError(
                "Only super-admins can turn an organization into a root"
            )
    else:
        await require_hierarchy_access(
            db, current_user, data.new_parent_org_id, manage=True
        )

    return await move_organization(db, org.id, data.new_parent_org_id, actor_id)


@router.delete("/{org_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_org(
    org_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Delete an organization without children (hierarchy:write)."""
    actor_id = current_user.id
    org, _ = await require_hierarchy_access(db, current_user, org_id, manage=True)

    await delete_organization(db, org.id, actor_id)
