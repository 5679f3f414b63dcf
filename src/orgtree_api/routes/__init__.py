from orgtree_api.routes.hierarchy import router as hierarchy_router
from orgtree_api.routes.organizations import router as organizations_router

__all__ = [
    "hierarchy_router",
    "organizations_router",
]
