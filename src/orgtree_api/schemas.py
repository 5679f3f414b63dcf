"""Pydantic schemas for API request/response models.

JSON field names are camelCase; snake_case names are accepted on input too.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from orgtree_api.auth.permissions import AccessSource
from orgtree_api.models.enums import (
    CompanySize,
    OrganizationRole,
    OrganizationType,
    PlanTier,
)


class ApiModel(BaseModel):
    """Base for all API schemas."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Organization Schemas ---


class OrganizationResponse(ApiModel):
    """Schema for organization response."""

    id: str
    name: str
    slug: str
    domain: str | None
    org_type: OrganizationType
    parent_org_id: str | None
    hierarchy_level: int
    allow_child_orgs: bool
    display_order: int
    plan_tier: PlanTier
    industry: str | None
    company_size: CompanySize | None
    country: str | None
    timezone: str
    logo_url: str | None
    brand_color: str | None
    settings: dict[str, Any]
    inherit_settings: bool
    created_at: datetime


class RootOrganizationCreate(ApiModel):
    """Schema for onboarding a root organization."""

    name: str = Field(min_length=1)
    org_type: str = OrganizationType.STANDARD.value
    slug: str | None = None
    plan_tier: str = PlanTier.STARTER.value
    allow_child_orgs: bool | None = None
    domain: str | None = None
    timezone: str | None = None
    settings: dict[str, Any] | None = None


class ChildOrganizationCreate(ApiModel):
    """Schema for creating a child organization.

    Enum fields are plain strings here; the creation workflow reports
    unknown values in its own validation order.
    """

    name: str = Field(min_length=1)
    org_type: str
    slug: str | None = None
    plan_tier: str | None = None
    settings: dict[str, Any] | None = None
    inherit_settings: bool = True
    allow_child_orgs: bool | None = None
    display_order: int = 0
    industry: str | None = None
    company_size: str | None = None
    country: str | None = None
    timezone: str | None = None
    logo_url: str | None = None
    brand_color: str | None = None
    domain: str | None = None


class ChildOrganizationCreateWithParent(ChildOrganizationCreate):
    """Child creation with the parent named in the body."""

    parent_org_id: str


class OrganizationUpdate(ApiModel):
    """Schema for updating an organization. Only sent fields change."""

    name: str | None = None
    org_type: str | None = None
    plan_tier: str | None = None
    allow_child_orgs: bool | None = None
    display_order: int | None = None
    industry: str | None = None
    company_size: str | None = None
    country: str | None = None
    timezone: str | None = None
    logo_url: str | None = None
    brand_color: str | None = None
    domain: str | None = None
    settings: dict[str, Any] | None = None


class OrganizationMove(ApiModel):
    """Schema for re-parenting an organization (null makes it a root)."""

    new_parent_org_id: str | None


# --- Hierarchy Schemas ---


class HierarchyNodeResponse(ApiModel):
    """One node of a nested hierarchy tree."""

    id: str
    name: str
    slug: str
    org_type: OrganizationType
    plan_tier: PlanTier
    hierarchy_level: int
    allow_child_orgs: bool
    display_order: int
    depth: int
    member_count: int | None = None
    child_count: int | None = None
    children: list["HierarchyNodeResponse"] = []


class HierarchyMeta(ApiModel):
    """What the requesting user may do at an organization."""

    can_create_children: bool
    recommended_child_types: list[OrganizationType]
    effective_role: OrganizationRole | None
    access_source: AccessSource


class HierarchyTreeResponse(ApiModel):
    data: HierarchyNodeResponse
    meta: HierarchyMeta


class ChildrenResponse(ApiModel):
    data: list[OrganizationResponse]
    meta: HierarchyMeta


class OrganizationListResponse(ApiModel):
    data: list[OrganizationResponse]


class AccessibleOrganizationResponse(ApiModel):
    """An organization the caller can see, with the grant behind it."""

    organization: OrganizationResponse
    role: OrganizationRole
    access_source: AccessSource
    granted_by_org_id: str


class AccessibleOrganizationListResponse(ApiModel):
    data: list[AccessibleOrganizationResponse]


class HierarchyStatsResponse(ApiModel):
    """Aggregates over an organization and its descendants."""

    root_org_id: str
    total_orgs: int
    max_depth: int
    orgs_by_type: dict[OrganizationType, int]
    orgs_by_level: dict[int, int]


class IntegrityReportResponse(ApiModel):
    org_id: str
    valid: bool
    issues: list[str]


class HierarchyOverviewMeta(ApiModel):
    total_orgs: int
    orgs_by_type: dict[OrganizationType, int]


class HierarchyOverviewResponse(ApiModel):
    """Back-office view: every root plus global counts."""

    data: list[OrganizationResponse]
    meta: HierarchyOverviewMeta
