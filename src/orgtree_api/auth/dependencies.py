"""FastAPI dependencies for authentication and hierarchy access."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from orgtree_api.auth.permissions import (
    EffectiveRole,
    can_manage_hierarchy,
    can_read_hierarchy,
    resolve_effective_role,
)
from orgtree_api.auth.tokens import AccessTokenPayload, TokenError, validate_token
from orgtree_api.db import get_db
from orgtree_api.exceptions import PermissionDeniedError
from orgtree_api.models import Organization, User
from orgtree_api.services import org_store

logger = logging.getLogger(__name__)

# auto_error=False allows us to answer missing tokens with 401 instead of 403
bearer_scheme = HTTPBearer(auto_error=False)


async def get_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> AccessTokenPayload:
    """Get and validate the bearer token (required).

    Raises HTTPException if no token provided or token is invalid.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return validate_token(credentials.credentials)
    except TokenError as e:
        logger.warning("Token validation failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user(
    token: Annotated[AccessTokenPayload, Depends(get_token)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the user the token was issued to.

    Raises HTTPException if the user no longer exists.
    """
    user = await db.get(User, token.sub)
    if user is None:
        logger.warning("Token subject %s does not match any user", token.sub)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_hierarchy_access(
    db: AsyncSession,
    user: User,
    org_id: str,
    manage: bool = False,
) -> tuple[Organization, EffectiveRole]:
    """Require the user can read (or, with ``manage``, change) the org's hierarchy.

    Returns the organization and the user's effective role in it.

    Raises:
        NotFoundError: Organization does not exist
        PermissionDeniedError: Role is insufficient
    """
    org = await org_store.get_organization(db, org_id)
    effective = await resolve_effective_role(db, user, org)

    if manage:
        if not can_manage_hierarchy(effective.role):
            raise PermissionDeniedError(
                "You do not have permission to manage this organization's hierarchy"
            )
    elif not can_read_hierarchy(effective.role):
        raise PermissionDeniedError("Not authorized to access this organization")

    return org, effective


async def require_superadmin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Require a back-office super-admin."""
    if not current_user.is_superadmin:
        raise PermissionDeniedError("Super-admin access required")
    return current_user
