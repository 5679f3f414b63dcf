"""Audit log for hierarchy mutations."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from orgtree_api.models.base import Base, TimestampMixin, generate_uuid
from orgtree_api.models.enums import HierarchyAction


class HierarchyAuditLog(Base, TimestampMixin):
    """One row per hierarchy mutation.

    Rows are added to the same session as the change they describe so both
    commit or roll back together. org_id is not a foreign key:
    the record outlives a deleted organization.
    """

    __tablename__ = "hierarchy_audit_logs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )
    org_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    actor_user_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Organization on whose behalf the actor acted (the parent, for creations)
    actor_org_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    action: Mapped[HierarchyAction] = mapped_column(
        Enum(HierarchyAction),
        nullable=False,
    )
    target_org_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    previous_state: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    new_state: Mapped[dict[str, Any] | None] = mapped_column(JSON)
