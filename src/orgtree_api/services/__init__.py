"""Service layer for business logic."""

from orgtree_api.services.child_creation import (
    ChildOrganizationInput,
    check_child_input,
    create_child_organization,
)
from orgtree_api.services.onboarding import (
    RootOrganizationInput,
    create_root_organization,
)
from orgtree_api.services.recommendations import (
    can_org_type_have_children,
    get_recommended_child_types,
)
from orgtree_api.services.settings_inheritance import resolve_initial_settings
from orgtree_api.services.tree_maintenance import (
    delete_organization,
    move_organization,
    update_organization,
)

__all__ = [
    "ChildOrganizationInput",
    "RootOrganizationInput",
    "can_org_type_have_children",
    "check_child_input",
    "create_child_organization",
    "create_root_organization",
    "delete_organization",
    "get_recommended_child_types",
    "move_organization",
    "resolve_initial_settings",
    "update_organization",
]
