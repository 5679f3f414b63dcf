"""Root onboarding and accessible-organization listing (requires auth)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.auth import get_accessible_organizations, get_current_user
from orgtree_api.db import get_db
from orgtree_api.models import User
from orgtree_api.schemas import (
    AccessibleOrganizationListResponse,
    AccessibleOrganizationResponse,
    OrganizationResponse,
    RootOrganizationCreate,
)
from orgtree_api.services import RootOrganizationInput, create_root_organization

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post(
    "", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED
)
async def create_organization(
    data: RootOrganizationCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create a root organization. Creator becomes owner."""
    return await create_root_organization(
        db, RootOrganizationInput(**data.model_dump()), current_user
    )


@router.get("", response_model=AccessibleOrganizationListResponse)
async def list_accessible_organizations(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """List organizations the current user can access.

    Direct memberships come with their own role; descendants of an
    owner or admin membership come as inherited admin access.
    """
    accessible = await get_accessible_organizations(db, current_user)

    return AccessibleOrganizationListResponse(
        data=[
            AccessibleOrganizationResponse(
                organization=OrganizationResponse.model_validate(a.organization),
                role=a.role,
                access_source=a.source,
                granted_by_org_id=a.granted_by_org_id,
            )
            for a in accessible
        ]
    )
