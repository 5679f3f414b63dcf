"""Static child-type policy used to guide child creation.

Recommendations never gate creation; any type may be inserted under any
parent that allows children.
"""

from orgtree_api.models.enums import OrganizationType

RECOMMENDED_CHILD_TYPES: dict[OrganizationType, list[OrganizationType]] = {
    OrganizationType.AGENCY: [OrganizationType.CLIENT, OrganizationType.BRAND],
    OrganizationType.HOLDING_COMPANY: [
        OrganizationType.SUBSIDIARY,
        OrganizationType.PORTFOLIO_COMPANY,
        OrganizationType.BRAND,
    ],
    OrganizationType.BRAND: [OrganizationType.SUB_BRAND, OrganizationType.REGIONAL],
    OrganizationType.DIVISION: [OrganizationType.DEPARTMENT],
    OrganizationType.FRANCHISE: [OrganizationType.FRANCHISEE],
    OrganizationType.RESELLER: [OrganizationType.CLIENT],
    OrganizationType.REGIONAL: [OrganizationType.STANDARD, OrganizationType.BRAND],
    OrganizationType.SUBSIDIARY: [
        OrganizationType.DIVISION,
        OrganizationType.DEPARTMENT,
    ],
}

DEFAULT_CHILD_TYPES = [OrganizationType.STANDARD]

# Types whose new instances allow children by default
TYPES_WITH_CHILDREN = frozenset(
    {
        OrganizationType.AGENCY,
        OrganizationType.HOLDING_COMPANY,
        OrganizationType.BRAND,
        OrganizationType.DIVISION,
        OrganizationType.FRANCHISE,
        OrganizationType.RESELLER,
        OrganizationType.REGIONAL,
    }
)


def get_recommended_child_types(
    parent_org_type: OrganizationType,
) -> list[OrganizationType]:
    """Child types for a parent type, most relevant first."""
    return list(RECOMMENDED_CHILD_TYPES.get(parent_org_type, DEFAULT_CHILD_TYPES))


def can_org_type_have_children(org_type: OrganizationType) -> bool:
    """Default for allow_child_orgs on a new organization of this type."""
    return org_type in TYPES_WITH_CHILDREN
