"""Creation of root organizations."""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.config import settings
from orgtree_api.exceptions import ConflictError, UnexpectedError, ValidationError
from orgtree_api.models import Organization, OrganizationMember, User
from orgtree_api.models.enums import (
    HierarchyAction,
    OrganizationRole,
    OrganizationType,
    PlanTier,
)
from orgtree_api.services import org_store
from orgtree_api.services.audit import org_state, record_hierarchy_action
from orgtree_api.services.child_creation import (
    coerce_enum,
    derive_unique_slug,
    normalize_domain,
)
from orgtree_api.services.recommendations import can_org_type_have_children
from orgtree_api.services.slug import validate_slug

logger = logging.getLogger(__name__)


@dataclass
class RootOrganizationInput:
    name: str
    org_type: OrganizationType | str = OrganizationType.STANDARD
    slug: str | None = None
    plan_tier: PlanTier | str = PlanTier.STARTER
    allow_child_orgs: bool | None = None
    domain: str | None = None
    timezone: str | None = None
    settings: dict[str, Any] | None = None


async def create_root_organization(
    db: AsyncSession,
    data: RootOrganizationInput,
    creator: User,
) -> Organization:
    """Create a root organization. Creator becomes owner."""
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("Organization name is required")
    org_type = coerce_enum(OrganizationType, data.org_type, "organization type")
    plan_tier = coerce_enum(PlanTier, data.plan_tier, "plan tier")

    if data.slug:
        reason = validate_slug(data.slug)
        if reason:
            raise ValidationError(reason)
        if await org_store.slug_exists(db, data.slug):
            raise ConflictError("Organization slug already exists")
        slug = data.slug
    else:
        slug = await derive_unique_slug(db, name)

    domain = normalize_domain(data.domain)
    if domain and await org_store.domain_exists(db, domain):
        raise ConflictError("Organization domain already exists")

    creator_id = creator.id
    org = Organization(
        name=name,
        slug=slug,
        domain=domain,
        org_type=org_type,
        parent_org_id=None,
        hierarchy_level=0,
        allow_child_orgs=(
            data.allow_child_orgs
            if data.allow_child_orgs is not None
            else can_org_type_have_children(org_type)
        ),
        plan_tier=plan_tier,
        timezone=data.timezone or settings.default_timezone,
        settings=dict(data.settings or {}),
        inherit_settings=False,
        created_by_id=creator_id,
    )
    try:
        await org_store.insert_organization(db, org)

        db.add(
            OrganizationMember(
                organization_id=org.id,
                user_id=creator_id,
                role=OrganizationRole.OWNER,
            )
        )
        record_hierarchy_action(
            db,
            HierarchyAction.ORG_CREATED,
            org_id=org.id,
            actor_user_id=creator_id,
            new_state=org_state(org),
        )
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if await org_store.slug_exists(db, slug):
            raise ConflictError("Organization slug already exists") from e
        if domain and await org_store.domain_exists(db, domain):
            raise ConflictError("Organization domain already exists") from e
        logger.exception("Inserting root organization %s failed", slug)
        raise UnexpectedError() from e

    await db.refresh(org)
    logger.info("Created root organization %s (%s)", org.id, org.slug)
    return org
