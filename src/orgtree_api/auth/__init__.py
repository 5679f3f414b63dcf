"""Authentication and authorization for the hierarchy API.

- Bearer tokens: HS256 JWTs naming the internal user id
- Roles: per-organization membership, inherited down the hierarchy
"""

from orgtree_api.auth.dependencies import (
    get_current_user,
    get_token,
    require_hierarchy_access,
    require_superadmin,
)
from orgtree_api.auth.permissions import (
    AccessSource,
    AccessibleOrganization,
    EffectiveRole,
    can_manage_hierarchy,
    can_read_hierarchy,
    get_accessible_organizations,
    has_permission,
    resolve_effective_role,
)
from orgtree_api.auth.tokens import (
    AccessTokenPayload,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
    create_access_token,
    validate_token,
)

__all__ = [
    # Dependencies
    "get_current_user",
    "get_token",
    "require_hierarchy_access",
    "require_superadmin",
    # Permissions
    "AccessSource",
    "AccessibleOrganization",
    "EffectiveRole",
    "can_manage_hierarchy",
    "can_read_hierarchy",
    "get_accessible_organizations",
    "has_permission",
    "resolve_effective_role",
    # Tokens
    "AccessTokenPayload",
    "TokenError",
    "TokenExpiredError",
    "TokenInvalidError",
    "create_access_token",
    "validate_token",
]
