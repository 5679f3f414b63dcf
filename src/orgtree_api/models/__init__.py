"""Database models."""

from orgtree_api.models.audit_log import HierarchyAuditLog
from orgtree_api.models.base import Base, TimestampMixin
from orgtree_api.models.enums import (
    CompanySize,
    HierarchyAction,
    OrganizationRole,
    OrganizationType,
    PlanTier,
)
from orgtree_api.models.organization import Organization
from orgtree_api.models.organization_member import OrganizationMember
from orgtree_api.models.user import User

__all__ = [
    "Base",
    "CompanySize",
    "HierarchyAction",
    "HierarchyAuditLog",
    "Organization",
    "OrganizationMember",
    "OrganizationRole",
    "OrganizationType",
    "PlanTier",
    "TimestampMixin",
    "User",
]
