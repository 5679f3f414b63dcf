"""Tests for hierarchy routes."""

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from orgtree_api.models import HierarchyAuditLog, Organization
from orgtree_api.models.enums import OrganizationRole, OrganizationType
from orgtree_api.services import hierarchy


# --- Child creation ---


async def test_create_child(client, login, async_session, owner, acme):
    login(owner)

    response = await client.post(
        f"/api/v1/hierarchy/{acme.id}/children",
        json={"name": "Acme Widgets", "orgType": "SUBSIDIARY", "inheritSettings": True},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["parentOrgId"] == acme.id
    assert data["hierarchyLevel"] == 1
    assert data["slug"] == "acme-widgets"
    assert data["settings"] == {"theme": "dark", "locale": "en"}
    assert data["orgType"] == "SUBSIDIARY"

    result = await async_session.execute(
        select(HierarchyAuditLog).where(HierarchyAuditLog.org_id == data["id"])
    )
    entry = result.scalar_one()
    assert entry.actor_org_id == acme.id
    assert entry.actor_user_id == owner.id


async def test_create_child_with_parent_in_body(client, login, owner, acme):
    login(owner)

    response = await client.post(
        "/api/v1/hierarchy",
        json={"parentOrgId": acme.id, "name": "Widgets", "orgType": "BRAND"},
    )

    assert response.status_code == 201
    assert response.json()["allowChildOrgs"] is True


async def test_create_child_accepts_snake_case(client, login, owner, acme):
    login(owner)

    response = await client.post(
        f"/api/v1/hierarchy/{acme.id}/children",
        json={"name": "Isolated", "org_type": "CLIENT", "inherit_settings": False},
    )

    assert response.status_code == 201
    assert response.json()["settings"] == {}


async def test_create_child_empty_name_is_400(client, login, owner, acme):
    login(owner)

    response = await client.post(
        f"/api/v1/hierarchy/{acme.id}/children",
        json={"name": "", "orgType": "BRAND"},
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("name")


async def test_create_child_unknown_type_is_400(client, login, owner, acme):
    login(owner)

    response = await client.post(
        f"/api/v1/hierarchy/{acme.id}/children",
        json={"name": "Child", "orgType": "GALAXY"},
    )

    assert response.status_code == 400
    assert "Invalid organization type 'GALAXY'" in response.json()["error"]


async def test_create_child_missing_parent_is_404(client, login, owner):
    login(owner)

    response = await client.post(
        "/api/v1/hierarchy/missing/children",
        json={"name": "Child", "orgType": "BRAND"},
    )

    assert response.status_code == 404
    assert response.json() == {"error": "Organization not found"}


async def test_create_child_input_checked_before_parent_lookup(client, login, owner):
    login(owner)

    blank = await client.post(
        "/api/v1/hierarchy/missing/children",
        json={"name": "   ", "orgType": "BRAND"},
    )
    unknown = await client.post(
        "/api/v1/hierarchy/missing/children",
        json={"name": "Child", "orgType": "GALAXY"},
    )

    assert blank.status_code == 400
    assert blank.json() == {"error": "Organization name is required"}
    assert unknown.status_code == 400
    assert "Invalid organization type 'GALAXY'" in unknown.json()["error"]


async def test_create_child_without_manage_permission_is_403(
    client, login, make_user, add_member, acme
):
    admin = await make_user("admin@acme.example")
    await add_member(acme, admin, OrganizationRole.ADMIN)
    login(admin)

    response = await client.post(
        f"/api/v1/hierarchy/{acme.id}/children",
        json={"name": "Child", "orgType": "BRAND"},
    )

    assert response.status_code == 403


async def test_create_child_under_closed_parent_is_403(
    client, login, make_org, add_member, owner, acme
):
    leaf = await make_org("Leaf", parent=acme, allow_child_orgs=False)
    await add_member(leaf, owner, OrganizationRole.OWNER)
    login(owner)

    response = await client.post(
        f"/api/v1/hierarchy/{leaf.id}/children",
        json={"name": "Child", "orgType": "BRAND"},
    )

    assert response.status_code == 403
    assert response.json() == {
        "error": "Parent organization does not allow child organizations"
    }


async def test_create_child_domain_conflict_is_409(
    client, login, make_org, owner, acme
):
    await make_org("Taken", parent=acme, domain="widgets.example")
    login(owner)

    response = await client.post(
        f"/api/v1/hierarchy/{acme.id}/children",
        json={"name": "Child", "orgType": "BRAND", "domain": "widgets.example"},
    )

    assert response.status_code == 409
    assert response.json() == {"error": "Organization domain already exists"}


# --- Reads ---


async def test_get_tree_with_meta(client, login, make_org, owner, acme):
    child = await make_org("Child", parent=acme, org_type=OrganizationType.BRAND)
    await make_org("Grandchild", parent=child)
    login(owner)

    response = await client.get(f"/api/v1/hierarchy/{acme.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["id"] == acme.id
    assert body["data"]["memberCount"] == 1
    assert body["data"]["children"][0]["name"] == "Child"
    assert body["data"]["children"][0]["children"][0]["depth"] == 2
    assert body["meta"] == {
        "canCreateChildren": True,
        "recommendedChildTypes": ["SUBSIDIARY", "PORTFOLIO_COMPANY", "BRAND"],
        "effectiveRole": "OWNER",
        "accessSource": "direct",
    }


async def test_get_tree_max_depth(client, login, make_org, owner, acme):
    child = await make_org("Child", parent=acme)
    await make_org("Grandchild", parent=child)
    login(owner)

    response = await client.get(f"/api/v1/hierarchy/{acme.id}", params={"maxDepth": 1})

    [child_node] = response.json()["data"]["children"]
    assert child_node["children"] == []
    assert child_node["childCount"] == 1


async def test_get_tree_negative_max_depth_is_400(client, login, owner, acme):
    login(owner)

    response = await client.get(f"/api/v1/hierarchy/{acme.id}", params={"maxDepth": -1})

    assert response.status_code == 400


async def test_inherited_admin_reads_but_cannot_create(
    client, login, make_org, owner, acme
):
    child = await make_org("Child", parent=acme, org_type=OrganizationType.DIVISION)
    login(owner)

    response = await client.get(f"/api/v1/hierarchy/{child.id}")

    assert response.status_code == 200
    assert response.json()["meta"] == {
        "canCreateChildren": False,
        "recommendedChildTypes": ["DEPARTMENT"],
        "effectiveRole": "ADMIN",
        "accessSource": "inherited",
    }


async def test_can_create_children_false_at_max_depth(client, login, superadmin, chain):
    login(superadmin)

    response = await client.get(f"/api/v1/hierarchy/{chain[10].id}")

    assert response.json()["meta"]["canCreateChildren"] is False


async def test_stranger_is_403(client, login, make_user, acme):
    stranger = await make_user("stranger@elsewhere.example")
    login(stranger)

    response = await client.get(f"/api/v1/hierarchy/{acme.id}")

    assert response.status_code == 403
    assert response.json() == {"error": "Not authorized to access this organization"}


async def test_list_children_filtered(client, login, make_org, owner, acme):
    brand = await make_org("Brand", parent=acme, org_type=OrganizationType.BRAND)
    sub = await make_org("Sub", parent=acme, org_type=OrganizationType.SUBSIDIARY)
    await make_org("Client", parent=acme, org_type=OrganizationType.CLIENT)
    login(owner)

    response = await client.get(
        f"/api/v1/hierarchy/{acme.id}/children",
        params={"orgTypes": ["BRAND", "SUBSIDIARY"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert [org["id"] for org in body["data"]] == [brand.id, sub.id]
    assert body["meta"]["canCreateChildren"] is True


async def test_list_children_unknown_filter_is_400(client, login, owner, acme):
    login(owner)

    response = await client.get(
        f"/api/v1/hierarchy/{acme.id}/children", params={"planTiers": "GOLD"}
    )

    assert response.status_code == 400
    assert "error" in response.json()


async def test_ancestors_stats_and_integrity(client, login, make_org, owner, acme):
    child = await make_org("Child", parent=acme, org_type=OrganizationType.BRAND)
    grandchild = await make_org("Grandchild", parent=child)
    login(owner)

    ancestors = await client.get(f"/api/v1/hierarchy/{grandchild.id}/ancestors")
    stats = await client.get(f"/api/v1/hierarchy/{acme.id}/stats")
    integrity = await client.get(f"/api/v1/hierarchy/{grandchild.id}/integrity")

    assert [org["id"] for org in ancestors.json()["data"]] == [child.id, acme.id]
    assert stats.json() == {
        "rootOrgId": acme.id,
        "totalOrgs": 3,
        "maxDepth": 2,
        "orgsByType": {"HOLDING_COMPANY": 1, "BRAND": 1, "STANDARD": 1},
        "orgsByLevel": {"0": 1, "1": 1, "2": 1},
    }
    assert integrity.json() == {"orgId": grandchild.id, "valid": True, "issues": []}


async def test_siblings(client, login, make_org, owner, superadmin, acme):
    a = await make_org("A", parent=acme)
    b = await make_org("B", parent=acme)
    other_root = await make_org("Other Root")
    login(owner)

    siblings = await client.get(f"/api/v1/hierarchy/{a.id}/siblings")
    hidden_roots = await client.get(f"/api/v1/hierarchy/{acme.id}/siblings")
    login(superadmin)
    roots = await client.get(f"/api/v1/hierarchy/{acme.id}/siblings")

    assert [org["id"] for org in siblings.json()["data"]] == [b.id]
    assert hidden_roots.json() == {"data": []}
    assert [org["id"] for org in roots.json()["data"]] == [other_root.id]


async def test_descendants_filtered(client, login, make_org, owner, acme):
    sub = await make_org("Sub", parent=acme, org_type=OrganizationType.SUBSIDIARY)
    brand = await make_org("Brand", parent=sub, org_type=OrganizationType.BRAND)
    login(owner)

    everything = await client.get(f"/api/v1/hierarchy/{acme.id}/descendants")
    brands = await client.get(
        f"/api/v1/hierarchy/{acme.id}/descendants", params={"orgTypes": "BRAND"}
    )
    shallow = await client.get(
        f"/api/v1/hierarchy/{acme.id}/descendants", params={"maxDepth": 1}
    )

    assert [org["id"] for org in everything.json()["data"]] == [sub.id, brand.id]
    assert [org["id"] for org in brands.json()["data"]] == [brand.id]
    assert [org["id"] for org in shallow.json()["data"]] == [sub.id]


async def test_descendants_requires_access(client, login, make_user, acme):
    login(await make_user("stranger@other.example"))

    response = await client.get(f"/api/v1/hierarchy/{acme.id}/descendants")

    assert response.status_code == 403


async def test_overview_requires_superadmin(client, login, superadmin, owner, acme):
    login(owner)
    denied = await client.get("/api/v1/hierarchy")

    login(superadmin)
    allowed = await client.get("/api/v1/hierarchy")

    assert denied.status_code == 403
    assert denied.json() == {"error": "Super-admin access required"}
    assert allowed.status_code == 200
    assert [org["id"] for org in allowed.json()["data"]] == [acme.id]
    assert allowed.json()["meta"] == {
        "totalOrgs": 1,
        "orgsByType": {"HOLDING_COMPANY": 1},
    }


async def test_storage_failure_is_generic_500(client, login, owner, acme, monkeypatch):
    async def broken_tree(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(hierarchy, "get_hierarchy_tree", broken_tree)
    login(owner)

    response = await client.get(f"/api/v1/hierarchy/{acme.id}")

    assert response.status_code == 500
    assert response.json() == {"error": "An unexpected error occurred"}


# --- Mutations ---


async def test_update_by_direct_owner(client, login, make_org, add_member, owner, acme):
    child = await make_org("Child", parent=acme)
    await add_member(child, owner, OrganizationRole.OWNER)
    login(owner)

    response = await client.patch(
        f"/api/v1/hierarchy/{child.id}",
        json={"displayOrder": 5, "brandColor": "#ff0000"},
    )

    assert response.status_code == 200
    assert response.json()["displayOrder"] == 5
    assert response.json()["brandColor"] == "#ff0000"
    assert response.json()["name"] == "Child"


async def test_update_by_inherited_admin_is_403(client, login, make_org, owner, acme):
    child = await make_org("Child", parent=acme)
    login(owner)

    response = await client.patch(
        f"/api/v1/hierarchy/{child.id}", json={"name": "Renamed"}
    )

    assert response.status_code == 403


async def test_move(client, login, make_org, superadmin, acme):
    a = await make_org("A", parent=acme)
    b = await make_org("B", parent=acme)
    login(superadmin)

    response = await client.post(
        f"/api/v1/hierarchy/{a.id}/move", json={"newParentOrgId": b.id}
    )

    assert response.status_code == 200
    assert response.json()["parentOrgId"] == b.id
    assert response.json()["hierarchyLevel"] == 2


async def test_move_to_root_requires_superadmin(
    client, login, make_org, add_member, owner, acme
):
    a = await make_org("A", parent=acme)
    await add_member(a, owner, OrganizationRole.OWNER)
    login(owner)

    response = await client.post(
        f"/api/v1/hierarchy/{a.id}/move", json={"newParentOrgId": None}
    )

    assert response.status_code == 403
    assert response.json() == {
        "error": "Only super-admins can turn an organization into a root"
    }


async def test_move_into_own_subtree_is_403(client, login, make_org, superadmin, acme):
    a = await make_org("A", parent=acme)
    a1 = await make_org("A1", parent=a)
    login(superadmin)

    response = await client.post(
        f"/api/v1/hierarchy/{a.id}/move", json={"newParentOrgId": a1.id}
    )

    assert response.status_code == 403
    assert "descendant" in response.json()["error"]


async def test_delete_leaf(client, login, async_session, make_org, superadmin, acme):
    leaf = await make_org("Leaf", parent=acme)
    leaf_id = leaf.id
    login(superadmin)

    response = await client.delete(f"/api/v1/hierarchy/{leaf_id}")

    assert response.status_code == 204
    async_session.expunge_all()
    assert await async_session.get(Organization, leaf_id) is None


async def test_delete_with_children_is_403(client, login, make_org, owner, acme):
    await make_org("Child", parent=acme)
    login(owner)

    response = await client.delete(f"/api/v1/hierarchy/{acme.id}")

    assert response.status_code == 403
    assert response.json() == {
        "error": "Cannot delete an organization that has child organizations"
    }
