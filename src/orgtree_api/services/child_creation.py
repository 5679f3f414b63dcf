"""Validated, transactional creation of child organizations."""

import enum
import logging
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.config import settings
from orgtree_api.exceptions import (
    ConflictError,
    NotFoundError,
    PolicyViolation,
    UnexpectedError,
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
from orgtree_api.services.recommendations import can_org_type_have_children
from orgtree_api.services.settings_inheritance import resolve_initial_settings
from orgtree_api.services.slug import first_free_slug, slugify, validate_slug

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=enum.Enum)


@dataclass
class ChildOrganizationInput:
    """Requested child organization.

    Enum-valued fields accept either the enum member or its string value so
    that unrecognized values are reported by the workflow, in order.
    """

    name: str
    org_type: OrganizationType | str
    slug: str | None = None
    plan_tier: PlanTier | str | None = None
    settings: dict[str, Any] | None = None
    inherit_settings: bool = True
    allow_child_orgs: bool | None = None
    display_order: int = 0
    industry: str | None = None
    company_size: CompanySize | str | None = None
    country: str | None = None
    timezone: str | None = None
    logo_url: str | None = None
    brand_color: str | None = None
    domain: str | None = None


def coerce_enum(enum_cls: type[E], value: E | str, label: str) -> E:
    """Convert ``value`` to ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {label} '{value}'. Must be one of: {allowed}"
        ) from None


def normalize_domain(domain: str | None) -> str | None:
    """Lowercase and trim a domain; blank means no domain."""
    if domain is None:
        return None
    domain = domain.strip().lower()
    if not domain:
        return None
    if any(char.isspace() for char in domain):
        raise ValidationError("Domain must not contain whitespace")
    return domain


@dataclass
class CheckedChildInput:
    name: str
    org_type: OrganizationType
    plan_tier: PlanTier | None
    company_size: CompanySize | None


def check_child_input(data: ChildOrganizationInput) -> CheckedChildInput:
    """Name and enum checks, the first steps of child creation.

    They need no database access, so callers may run them before
    looking the parent up.

    Raises:
        ValidationError: Blank name or unknown enum value
    """
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("Organization name is required")

    org_type = coerce_enum(OrganizationType, data.org_type, "organization type")
    plan_tier = (
        coerce_enum(PlanTier, data.plan_tier, "plan tier")
        if data.plan_tier is not None
        else None
    )
    company_size = (
        coerce_enum(CompanySize, data.company_size, "company size")
        if data.company_size is not None
        else None
    )
    return CheckedChildInput(name, org_type, plan_tier, company_size)


async def derive_unique_slug(db: AsyncSession, name: str) -> str:
    """Slug for ``name``, suffixed with -1, -2, ... until unused."""
    base = slugify(name)
    taken = await org_store.find_slugs_with_prefix(db, base)
    return first_free_slug(base, taken)


async def _resolve_slug(db: AsyncSession, name: str, explicit_slug: str | None) -> str:
    if not explicit_slug:
        return await derive_unique_slug(db, name)

    reason = validate_slug(explicit_slug)
    if reason:
        raise ValidationError(reason)
    if await org_store.slug_exists(db, explicit_slug):
        raise ConflictError("Organization slug already exists")
    return explicit_slug


async def create_child_organization(
    db: AsyncSession,
    parent_org_id: str,
    data: ChildOrganizationInput,
    actor_id: str | None,
) -> Organization:
    """Create a child organization under ``parent_org_id``.

    Checks run in order and the first failure is raised:
    name, org type (and other enum fields), parent existence, parent
    allow_child_orgs, depth limit, slug, domain.

    The organization and its ORG_CREATED audit record are committed
    together. If the commit hits a uniqueness violation (a concurrent
    request took the slug), a derived slug is re-derived and the insert
    retried once; an explicit slug or a taken domain raises ConflictError.
    Any other integrity failure raises UnexpectedError.

    Raises:
        ValidationError: Malformed input
        NotFoundError: Parent does not exist
        PolicyViolation: Parent disallows children or depth would be exceeded
        ConflictError: Slug or domain already taken
        UnexpectedError: Insert failed for another reason
    """
    checked = check_child_input(data)
    name, org_type = checked.name, checked.org_type
    plan_tier, company_size = checked.plan_tier, checked.company_size

    parent = await db.get(Organization, parent_org_id)
    if parent is None:
        raise NotFoundError("Parent organization not found")

    if not parent.allow_child_orgs:
        raise PolicyViolation("Parent organization does not allow child organizations")

    max_depth = settings.max_hierarchy_depth
    if await hierarchy.would_exceed_max_depth(db, parent.id, max_depth):
        raise PolicyViolation(f"Maximum hierarchy depth ({max_depth}) exceeded")

    explicit_slug = data.slug.strip() if data.slug else None
    slug = await _resolve_slug(db, name, explicit_slug)

    domain = normalize_domain(data.domain)
    if domain and await org_store.domain_exists(db, domain):
        raise ConflictError("Organization domain already exists")

    # Plain values only from here on: a rollback expires the parent instance
    hierarchy_level = await hierarchy.compute_hierarchy_level(db, parent.id)
    initial_settings = resolve_initial_settings(
        parent.settings, data.settings, data.inherit_settings
    )
    parent_id = parent.id
    parent_plan_tier = parent.plan_tier
    allow_child_orgs = (
        data.allow_child_orgs
        if data.allow_child_orgs is not None
        else can_org_type_have_children(org_type)
    )

    for attempt in range(2):
        org = Organization(
            name=name,
            slug=slug,
            domain=domain,
            org_type=org_type,
            parent_org_id=parent_id,
            hierarchy_level=hierarchy_level,
            allow_child_orgs=allow_child_orgs,
            display_order=data.display_order,
            plan_tier=plan_tier or parent_plan_tier,
            industry=data.industry,
            company_size=company_size,
            country=data.country,
            timezone=data.timezone or settings.default_timezone,
            logo_url=data.logo_url,
            brand_color=data.brand_color,
            settings=dict(initial_settings),
            inherit_settings=data.inherit_settings,
            created_by_id=actor_id,
        )
        try:
            await org_store.insert_organization(db, org)
            record_hierarchy_action(
                db,
                HierarchyAction.ORG_CREATED,
                org_id=org.id,
                actor_user_id=actor_id,
                actor_org_id=parent_id,
                new_state=org_state(org),
            )
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if domain and await org_store.domain_exists(db, domain):
                raise ConflictError("Organization domain already exists") from e
            if not await org_store.slug_exists(db, slug):
                logger.exception("Inserting organization %s failed", slug)
                raise UnexpectedError() from e
            if explicit_slug or attempt > 0:
                raise ConflictError("Organization slug already exists") from e
            logger.warning("Slug %s was taken concurrently, deriving a new one", slug)
            slug = await derive_unique_slug(db, name)
            continue

        await db.refresh(org)
        logger.info(
            "Created organization %s (%s) under %s at level %d",
            org.id,
            org.slug,
            parent_id,
            hierarchy_level,
        )
        return org

    # Unreachable: the second attempt either returns or raises
    raise ConflictError("Organization slug already exists")
