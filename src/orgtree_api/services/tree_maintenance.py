"""Mutations of existing organizations: update, move (re-parent) and delete."""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.config import settings
from orgtree_api.exceptions import (
    ConflictError,
    NotFoundError,
    PolicyViolation,
    ValidationError,
)
from orgtree_api.models import Organization
from orgtree_api.models.enums import (
    CompanySize,
    HierarchyAction,
    OrganizationType,
    PlanTier,
)
from orgtree_api.services import hierarchy, org_store
from orgtree_api.services.audit import org_state, record_hierarchy_action
from orgtree_api.services.child_creation import coerce_enum, normalize_domain

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "org_type",
        "plan_tier",
        "allow_child_orgs",
        "display_order",
        "industry",
        "company_size",
        "country",
        "timezone",
        "logo_url",
        "brand_color",
        "domain",
        "settings",
    }
)


async def update_organization(
    db: AsyncSession,
    org_id: str,
    changes: Mapping[str, Any],
    actor_id: str | None,
) -> Organization:
    """Apply field changes to an organization.

    Settings are replaced wholesale and never pushed down to children.
    Turning off allow_child_orgs only blocks future children.
    """
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

    org = await org_store.get_organization(db, org_id)
    values = dict(changes)

    if "name" in values:
        values["name"] = (values["name"] or "").strip()
        if not values["name"]:
            raise ValidationError("Organization name is required")
    if "org_type" in values:
        values["org_type"] = coerce_enum(
            OrganizationType, values["org_type"], "organization type"
        )
    if "plan_tier" in values:
        values["plan_tier"] = coerce_enum(PlanTier, values["plan_tier"], "plan tier")
    if values.get("company_size") is not None:
        values["company_size"] = coerce_enum(
            CompanySize, values["company_size"], "company size"
        )
    if "settings" in values:
        values["settings"] = dict(values["settings"] or {})
    if "timezone" in values and not values["timezone"]:
        values["timezone"] = settings.default_timezone
    for required in ("allow_child_orgs", "display_order"):
        if required in values and values[required] is None:
            raise ValidationError(f"{required} cannot be null")
    if "domain" in values:
        values["domain"] = normalize_domain(values["domain"])
        if (
            values["domain"]
            and values["domain"] != org.domain
            and await org_store.domain_exists(db, values["domain"])
        ):
            raise ConflictError("Organization domain already exists")

    previous_state = org_state(org, *values)
    for name, value in values.items():
        setattr(org, name, value)

    record_hierarchy_action(
        db,
        HierarchyAction.ORG_UPDATED,
        org_id=org.id,
        actor_user_id=actor_id,
        actor_org_id=org.parent_org_id,
        previous_state=previous_state,
        new_state=org_state(org, *values),
    )
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Organization domain already exists") from e

    await db.refresh(org)
    logger.info("Updated organization %s fields %s", org.id, sorted(values))
    return org


async def move_organization(
    db: AsyncSession,
    org_id: str,
    new_parent_org_id: str | None,
    actor_id: str | None,
) -> Organization:
    """Re-parent an organization together with its whole subtree.

    ``new_parent_org_id=None`` turns the organization into a root. The new
    parent must allow children and must not be the organization itself or
    one of its descendants; the deepest node of the moved subtree must stay
    within the maximum depth. Levels of every moved node are shifted in the
    same transaction as the move and its ORG_MOVED audit record.

    Raises:
        NotFoundError: Organization or new parent does not exist
        PolicyViolation: Parent disallows children, cycle, or depth exceeded
    """
    org = await org_store.get_organization(db, org_id)
    if new_parent_org_id == org.parent_org_id:
        return org

    max_depth = settings.max_hierarchy_depth

    if new_parent_org_id is None:
        new_level = 0
    else:
        if new_parent_org_id == org.id:
            raise PolicyViolation("Cannot move an organization under itself")
        new_parent = await db.get(Organization, new_parent_org_id)
        if new_parent is None:
            raise NotFoundError("New parent organization not found")
        if not new_parent.allow_child_orgs:
            raise PolicyViolation(
                "New parent organization does not allow child organizations"
            )
        if await hierarchy.is_descendant_of(db, new_parent.id, org.id):
            raise PolicyViolation(
                "Cannot move an organization under its own descendant"
            )
        new_level = new_parent.hierarchy_level + 1

    descendants = await hierarchy.list_descendants(db, org.id, max_depth)
    subtree_height = max(
        (desc.hierarchy_level - org.hierarchy_level for desc in descendants),
        default=0,
    )
    if new_level + subtree_height > max_depth:
        raise PolicyViolation(
            f"Move would exceed maximum hierarchy depth ({max_depth})"
        )

    previous_state = org_state(org, "parent_org_id", "hierarchy_level")
    level_diff = new_level - org.hierarchy_level

    org.parent_org_id = new_parent_org_id
    org.hierarchy_level = new_level
    if descendants and level_diff:
        await db.execute(
            update(Organization)
            .where(Organization.id.in_([desc.id for desc in descendants]))
            .values(hierarchy_level=Organization.hierarchy_level + level_diff)
        )

    record_hierarchy_action(
        db,
        HierarchyAction.ORG_MOVED,
        org_id=org.id,
        actor_user_id=actor_id,
        actor_org_id=new_parent_org_id,
        target_org_id=new_parent_org_id,
        previous_state=previous_state,
        new_state=org_state(org, "parent_org_id", "hierarchy_level"),
    )
    await db.commit()
    await db.refresh(org)

    logger.info(
        "Moved organization %s (%d descendants) under %s",
        org.id,
        len(descendants),
        new_parent_org_id,
    )
    return org


async def delete_organization(
    db: AsyncSession,
    org_id: str,
    actor_id: str | None,
) -> None:
    """Delete a leaf organization.

    Organizations with children are never deleted; their children must be
    moved or deleted first.

    Raises:
        NotFoundError: Organization does not exist
        PolicyViolation: Organization has child organizations
    """
    org = await org_store.get_organization(db, org_id)

    child_counts = await org_store.count_children_by_parent(db, [org.id])
    if child_counts.get(org.id, 0) > 0:
        raise PolicyViolation(
            "Cannot delete an organization that has child organizations"
        )

    record_hierarchy_action(
        db,
        HierarchyAction.ORG_DELETED,
        org_id=org.id,
        actor_user_id=actor_id,
        actor_org_id=org.parent_org_id,
        previous_state=org_state(org),
    )
    await db.delete(org)
    await db.commit()

    logger.info("Deleted organization %s", org_id)
