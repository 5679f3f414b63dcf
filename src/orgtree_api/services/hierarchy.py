"""Read-only structural queries over the organization tree.

Traversals go one level at a time: each level costs a single query for the
whole frontier, so the number of queries grows with tree depth, never with
tree size. Every walk is capped at a maximum depth so a corrupted parent
chain (a cycle) cannot make it run forever.
"""

from collections import Counter
from collections.abc import Collection
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.config import settings
from orgtree_api.exceptions import ValidationError
from orgtree_api.models import Organization
from orgtree_api.models.enums import OrganizationType, PlanTier
from orgtree_api.services import org_store


@dataclass
class HierarchyNode:
    """One organization in a nested tree representation."""

    id: str
    name: str
    slug: str
    org_type: OrganizationType
    plan_tier: PlanTier
    hierarchy_level: int
    allow_child_orgs: bool
    display_order: int
    # Distance from the node the tree was requested for
    depth: int
    children: list["HierarchyNode"] = field(default_factory=list)
    member_count: int | None = None
    child_count: int | None = None

    @classmethod
    def from_org(cls, org: Organization, depth: int) -> "HierarchyNode":
        return cls(
            id=org.id,
            name=org.name,
            slug=org.slug,
            org_type=org.org_type,
            plan_tier=org.plan_tier,
            hierarchy_level=org.hierarchy_level,
            allow_child_orgs=org.allow_child_orgs,
            display_order=org.display_order,
            depth=depth,
        )

    def iter_nodes(self):
        """Yield this node and all nodes below it, parents before children."""
        yield self
        for child in self.children:
            yield from child.iter_nodes()


@dataclass
class HierarchyStats:
    """Aggregates over a subtree."""

    root_org_id: str
    total_orgs: int
    max_depth: int
    orgs_by_type: dict[OrganizationType, int]
    orgs_by_level: dict[int, int]


@dataclass
class IntegrityReport:
    """Result of checking one node against the tree invariants."""

    org_id: str
    valid: bool
    issues: list[str]


def _resolve_max_depth(max_depth: int | None) -> int:
    if max_depth is None:
        return settings.max_hierarchy_depth
    if max_depth < 0:
        raise ValidationError("maxDepth must be zero or greater")
    return max_depth


async def _collect_levels(
    db: AsyncSession,
    root: Organization,
    max_depth: int,
) -> list[list[Organization]]:
    """Breadth-first levels below ``root``; levels[0] is [root].

    Stops after ``max_depth`` levels. A node seen before is dropped, which
    both ends a corrupted cycle and keeps each org in the result once.
    """
    levels = [[root]]
    seen = {root.id}
    frontier = [root]

    for _ in range(max_depth):
        children = await org_store.find_children_of_many(
            db, [org.id for org in frontier]
        )
        children = [child for child in children if child.id not in seen]
        if not children:
            break
        seen.update(child.id for child in children)
        levels.append(children)
        frontier = children

    return levels


def _build_tree(levels: list[list[Organization]]) -> HierarchyNode:
    root = levels[0][0]
    root_node = HierarchyNode.from_org(root, depth=0)
    nodes = {root.id: root_node}

    for depth, level in enumerate(levels[1:], start=1):
        for org in level:
            node = HierarchyNode.from_org(org, depth=depth)
            nodes[org.id] = node
            nodes[org.parent_org_id].children.append(node)

    return root_node


async def get_direct_children(
    db: AsyncSession,
    org_id: str,
    org_types: Collection[OrganizationType] | None = None,
    plan_tiers: Collection[PlanTier] | None = None,
) -> list[Organization]:
    """Immediate children ordered by display_order, then creation time.

    Raises:
        NotFoundError: If the organization does not exist
    """
    await org_store.get_organization(db, org_id)
    return await org_store.find_children(
        db, org_id, org_types=org_types, plan_tiers=plan_tiers
    )


async def get_descendants_recursive(
    db: AsyncSession,
    org_id: str,
    max_depth: int | None = None,
) -> HierarchyNode:
    """Nested tree of ``org_id`` and every node at most ``max_depth`` below it."""
    max_depth = _resolve_max_depth(max_depth)
    root = await org_store.get_organization(db, org_id)
    levels = await _collect_levels(db, root, max_depth)
    return _build_tree(levels)


async def list_descendants(
    db: AsyncSession,
    org_id: str,
    max_depth: int | None = None,
    org_types: Collection[OrganizationType] | None = None,
) -> list[Organization]:
    """Flat list of descendants (root excluded), shallowest level first.

    ``org_types`` filters the result only; the walk still passes through
    nodes of other types.
    """
    max_depth = _resolve_max_depth(max_depth)
    root = await org_store.get_organization(db, org_id)
    levels = await _collect_levels(db, root, max_depth)
    descendants = [org for level in levels[1:] for org in level]
    if org_types:
        descendants = [org for org in descendants if org.org_type in org_types]
    return descendants


async def compute_hierarchy_level(
    db: AsyncSession,
    parent_org_id: str | None,
) -> int:
    """Level a new child of ``parent_org_id`` would get (0 for a root)."""
    if parent_org_id is None:
        return 0
    parent = await org_store.get_organization(db, parent_org_id)
    return parent.hierarchy_level + 1


async def would_exceed_max_depth(
    db: AsyncSession,
    parent_org_id: str | None,
    max_depth: int | None = None,
) -> bool:
    """True if a child created under ``parent_org_id`` would sit below ``max_depth``."""
    max_depth = _resolve_max_depth(max_depth)
    return await compute_hierarchy_level(db, parent_org_id) > max_depth


async def get_hierarchy_tree(
    db: AsyncSession,
    root_org_id: str,
    max_depth: int | None = None,
) -> HierarchyNode:
    """Full tree from ``root_org_id`` down, annotated with member and child counts.

    child_count is the real number of children, also for nodes at the depth
    cap whose children are not included in the tree.
    """
    max_depth = _resolve_max_depth(max_depth)
    root = await org_store.get_organization(db, root_org_id)
    levels = await _collect_levels(db, root, max_depth)
    tree = _build_tree(levels)

    org_ids = [org.id for level in levels for org in level]
    member_counts = await org_store.count_members_by_org(db, org_ids)
    child_counts = await org_store.count_children_by_parent(db, org_ids)
    for node in tree.iter_nodes():
        node.member_count = member_counts.get(node.id, 0)
        node.child_count = child_counts.get(node.id, 0)

    return tree


async def _walk_ancestors(
    db: AsyncSession,
    org: Organization,
    limit: int,
) -> tuple[list[Organization], bool]:
    """Follow parent_org_id upwards for at most ``limit`` steps.

    Returns (ancestors nearest first, reached_root). The walk stops early on
    a missing parent or an id already visited.
    """
    ancestors: list[Organization] = []
    seen = {org.id}
    current = org

    for _ in range(limit):
        if current.parent_org_id is None:
            return ancestors, True
        if current.parent_org_id in seen:
            return ancestors, False
        parent = await db.get(Organization, current.parent_org_id)
        if parent is None:
            return ancestors, False
        ancestors.append(parent)
        seen.add(parent.id)
        current = parent

    return ancestors, current.parent_org_id is None


async def get_ancestors(db: AsyncSession, org_id: str) -> list[Organization]:
    """Ancestors from the immediate parent up to the root."""
    org = await org_store.get_organization(db, org_id)
    ancestors, _ = await _walk_ancestors(db, org, settings.max_hierarchy_depth + 1)
    return ancestors


async def is_descendant_of(
    db: AsyncSession,
    candidate_id: str,
    ancestor_id: str,
) -> bool:
    """True if ``ancestor_id`` appears on the parent chain of ``candidate_id``."""
    ancestors = await get_ancestors(db, candidate_id)
    return any(org.id == ancestor_id for org in ancestors)


async def get_siblings(db: AsyncSession, org_id: str) -> list[Organization]:
    """Other children of the same parent (other roots, for a root)."""
    org = await org_store.get_organization(db, org_id)
    if org.parent_org_id is None:
        candidates = await org_store.find_roots(db)
    else:
        candidates = await org_store.find_children(db, org.parent_org_id)
    return [sibling for sibling in candidates if sibling.id != org_id]


async def get_hierarchy_stats(db: AsyncSession, root_org_id: str) -> HierarchyStats:
    """Counts by type and level for ``root_org_id`` and its descendants."""
    root = await org_store.get_organization(db, root_org_id)
    levels = await _collect_levels(db, root, settings.max_hierarchy_depth)
    orgs = [org for level in levels for org in level]

    orgs_by_type = await org_store.aggregate_counts_by_type(
        db, [org.id for org in orgs]
    )
    orgs_by_level = Counter(org.hierarchy_level for org in orgs)

    return HierarchyStats(
        root_org_id=root.id,
        total_orgs=len(orgs),
        max_depth=max(orgs_by_level),
        orgs_by_type=orgs_by_type,
        orgs_by_level=dict(sorted(orgs_by_level.items())),
    )


async def validate_hierarchy_integrity(
    db: AsyncSession,
    org_id: str,
) -> IntegrityReport:
    """Check one node's level, depth bound and parent chain."""
    org = await org_store.get_organization(db, org_id)
    max_depth = settings.max_hierarchy_depth
    issues: list[str] = []

    if org.parent_org_id is not None:
        parent = await db.get(Organization, org.parent_org_id)
        if parent is None:
            issues.append(f"Parent organization {org.parent_org_id} not found")
        elif org.hierarchy_level != parent.hierarchy_level + 1:
            issues.append(
                f"Hierarchy level mismatch: expected {parent.hierarchy_level + 1}, "
                f"found {org.hierarchy_level}"
            )
    elif org.hierarchy_level != 0:
        issues.append(
            f"Root org should have hierarchy level 0, found {org.hierarchy_level}"
        )

    if org.hierarchy_level > max_depth:
        issues.append(
            f"Hierarchy level {org.hierarchy_level} exceeds maximum depth {max_depth}"
        )

    ancestors, reached_root = await _walk_ancestors(db, org, max_depth + 1)
    ancestor_ids = {ancestor.id for ancestor in ancestors}
    last = ancestors[-1] if ancestors else org
    if org.id == last.parent_org_id or last.parent_org_id in ancestor_ids:
        issues.append("Circular reference detected in parent chain")
    elif not reached_root and len(ancestors) > max_depth:
        issues.append(f"Parent chain does not reach a root within {max_depth} steps")

    return IntegrityReport(org_id=org.id, valid=not issues, issues=issues)
