"""Hierarchy audit records.

Records are only added to the session; they are committed (or rolled back)
together with the change they describe.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.models import HierarchyAuditLog, Organization
from orgtree_api.models.enums import HierarchyAction


def org_state(org: Organization, *fields: str) -> dict[str, Any]:
    """JSON-safe snapshot of selected organization fields."""
    fields = fields or ("name", "slug", "org_type", "parent_org_id", "hierarchy_level")
    state: dict[str, Any] = {}
    for name in fields:
        value = getattr(org, name)
        state[name] = getattr(value, "value", value)
    return state


def record_hierarchy_action(
    db: AsyncSession,
    action: HierarchyAction,
    org_id: str,
    actor_user_id: str | None,
    actor_org_id: str | None = None,
    target_org_id: str | None = None,
    previous_state: dict[str, Any] | None = None,
    new_state: dict[str, Any] | None = None,
) -> HierarchyAuditLog:
    entry = HierarchyAuditLog(
        org_id=org_id,
        actor_user_id=actor_user_id,
        actor_org_id=actor_org_id,
        action=action,
        target_org_id=target_org_id,
        previous_state=previous_state,
        new_state=new_state,
    )
    db.add(entry)
    return entry
