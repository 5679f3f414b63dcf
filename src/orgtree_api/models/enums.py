"""Enumeration types for database models."""

import enum


class OrganizationType(str, enum.Enum):
    """Kind of organization within a hierarchy."""

    STANDARD = "STANDARD"
    AGENCY = "AGENCY"
    HOLDING_COMPANY = "HOLDING_COMPANY"
    SUBSIDIARY = "SUBSIDIARY"
    BRAND = "BRAND"
    SUB_BRAND = "SUB_BRAND"
    DIVISION = "DIVISION"
    DEPARTMENT = "DEPARTMENT"
    FRANCHISE = "FRANCHISE"
    FRANCHISEE = "FRANCHISEE"
    RESELLER = "RESELLER"
    CLIENT = "CLIENT"
    REGIONAL = "REGIONAL"
    PORTFOLIO_COMPANY = "PORTFOLIO_COMPANY"


class PlanTier(str, enum.Enum):
    """Commercial plan of an organization."""

    STARTER = "STARTER"
    PROFESSIONAL = "PROFESSIONAL"
    ENTERPRISE = "ENTERPRISE"


class CompanySize(str, enum.Enum):
    """Head-count band of an organization."""

    SOLO = "SOLO"  # 1
    SMALL = "SMALL"  # 2-10
    MEDIUM = "MEDIUM"  # 11-50
    LARGE = "LARGE"  # 51-200
    ENTERPRISE = "ENTERPRISE"  # 201-1000
    GLOBAL = "GLOBAL"  # 1000+


class OrganizationRole(str, enum.Enum):
    """Role of a user within an organization."""

    OWNER = "OWNER"  # Full control, including the hierarchy below
    ADMIN = "ADMIN"  # Manages members and content, reads the hierarchy
    MEMBER = "MEMBER"  # Read/write access to content
    VIEWER = "VIEWER"  # Read-only access to content


class HierarchyAction(str, enum.Enum):
    """Actions recorded in the hierarchy audit log."""

    ORG_CREATED = "ORG_CREATED"
    ORG_MOVED = "ORG_MOVED"
    ORG_UPDATED = "ORG_UPDATED"
    ORG_DELETED = "ORG_DELETED"
