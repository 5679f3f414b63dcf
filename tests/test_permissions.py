"""Tests for role permissions and effective-role resolution."""

import pytest

from orgtree_api.auth.permissions import (
    AccessSource,
    can_manage_hierarchy,
    can_read_hierarchy,
    get_accessible_organizations,
    has_permission,
    resolve_effective_role,
)
from orgtree_api.models.enums import OrganizationRole


@pytest.mark.parametrize(
    "role,manage,read",
    [
        (OrganizationRole.OWNER, True, True),
        (OrganizationRole.ADMIN, False, True),
        (OrganizationRole.MEMBER, False, False),
        (OrganizationRole.VIEWER, False, False),
        (None, False, False),
    ],
)
def test_hierarchy_permissions(role, manage, read):
    assert can_manage_hierarchy(role) is manage
    assert can_read_hierarchy(role) is read


def test_wildcard_grants():
    assert has_permission(OrganizationRole.OWNER, "hierarchy:move")
    assert not has_permission(OrganizationRole.ADMIN, "hierarchy:write")
    assert not has_permission(OrganizationRole.OWNER, "billing:refund")


class TestEffectiveRole:
    async def test_direct_membership(self, async_session, owner, acme):
        effective = await resolve_effective_role(async_session, owner, acme)

        assert effective.role == OrganizationRole.OWNER
        assert effective.source == AccessSource.DIRECT

    async def test_owner_inherits_admin_below(
        self, async_session, make_org, owner, acme
    ):
        child = await make_org("Child", parent=acme)
        grandchild = await make_org("Grandchild", parent=child)

        effective = await resolve_effective_role(async_session, owner, grandchild)

        assert effective.role == OrganizationRole.ADMIN
        assert effective.source == AccessSource.INHERITED
        assert effective.granted_by_org_id == acme.id

    async def test_nearest_ancestor_wins(
        self, async_session, make_org, make_user, add_member, acme
    ):
        user = await make_user("nearest@acme.example")
        child = await make_org("Child", parent=acme)
        grandchild = await make_org("Grandchild", parent=child)
        await add_member(acme, user, OrganizationRole.ADMIN)
        await add_member(child, user, OrganizationRole.OWNER)

        effective = await resolve_effective_role(async_session, user, grandchild)

        assert effective.granted_by_org_id == child.id

    async def test_direct_membership_wins_over_inherited(
        self, async_session, make_org, add_member, owner, acme
    ):
        child = await make_org("Child", parent=acme)
        await add_member(child, owner, OrganizationRole.VIEWER)

        effective = await resolve_effective_role(async_session, owner, child)

        assert effective.role == OrganizationRole.VIEWER
        assert effective.source == AccessSource.DIRECT

    async def test_member_role_is_not_inherited(
        self, async_session, make_org, make_user, add_member, acme
    ):
        user = await make_user("member@acme.example")
        await add_member(acme, user, OrganizationRole.MEMBER)
        child = await make_org("Child", parent=acme)

        effective = await resolve_effective_role(async_session, user, child)

        assert effective.role is None
        assert effective.source == AccessSource.NONE

    async def test_superadmin(self, async_session, superadmin, acme):
        effective = await resolve_effective_role(async_session, superadmin, acme)

        assert effective.role == OrganizationRole.OWNER
        assert effective.source == AccessSource.SUPERADMIN


class TestAccessibleOrganizations:
    async def test_owner_sees_descendants_as_inherited(
        self, async_session, make_org, owner, acme
    ):
        child = await make_org("Child", parent=acme)
        grandchild = await make_org("Grandchild", parent=child)
        await make_org("Unrelated")

        accessible = await get_accessible_organizations(async_session, owner)

        assert [a.organization.id for a in accessible] == [
            acme.id,
            child.id,
            grandchild.id,
        ]
        assert [a.source for a in accessible] == [
            AccessSource.DIRECT,
            AccessSource.INHERITED,
            AccessSource.INHERITED,
        ]
        assert accessible[2].role == OrganizationRole.ADMIN
        assert accessible[2].granted_by_org_id == acme.id

    async def test_direct_membership_listed_once(
        self, async_session, make_org, add_member, owner, acme
    ):
        child = await make_org("Child", parent=acme)
        await add_member(child, owner, OrganizationRole.VIEWER)

        accessible = await get_accessible_organizations(async_session, owner)

        assert len(accessible) == 2
        assert accessible[1].organization.id == child.id
        assert accessible[1].role == OrganizationRole.VIEWER
        assert accessible[1].source == AccessSource.DIRECT

    async def test_nearest_grant_wins(
        self, async_session, make_org, make_user, add_member, acme
    ):
        user = await make_user("nearest@acme.example")
        child = await make_org("Child", parent=acme)
        grandchild = await make_org("Grandchild", parent=child)
        await add_member(acme, user, OrganizationRole.ADMIN)
        await add_member(child, user, OrganizationRole.OWNER)

        accessible = await get_accessible_organizations(async_session, user)

        by_id = {a.organization.id: a for a in accessible}
        assert by_id[grandchild.id].granted_by_org_id == child.id

    async def test_member_role_grants_nothing_below(
        self, async_session, make_org, make_user, add_member, acme
    ):
        user = await make_user("member@acme.example")
        membership = await add_member(acme, user, OrganizationRole.MEMBER)
        await make_org("Child", parent=acme)

        accessible = await get_accessible_organizations(async_session, user)

        assert not membership.grants_descendant_access
        assert [a.organization.id for a in accessible] == [acme.id]
