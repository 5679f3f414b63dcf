"""Bearer access tokens.

Tokens are HS256 JWTs carrying the internal user id in ``sub``. Minting is
used by the onboarding flow and tests; every request validates.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError

from orgtree_api.config import jwt_settings


class TokenError(Exception):
    """Base exception for token operations."""

    pass


class TokenExpiredError(TokenError):
    """Token has expired."""

    pass


class TokenInvalidError(TokenError):
    """Token is invalid."""

    pass


@dataclass
class AccessTokenPayload:
    """Decoded access token claims."""

    sub: str  # Internal user ID
    iss: str
    aud: str
    exp: int
    iat: int

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "AccessTokenPayload":
        required = ["sub", "iss", "aud", "exp", "iat"]
        for claim in required:
            if claim not in payload:
                raise TokenInvalidError(f"Token missing required '{claim}' claim")

        return cls(
            sub=payload["sub"],
            iss=payload["iss"],
            aud=payload["aud"],
            exp=payload["exp"],
            iat=payload["iat"],
        )


def create_access_token(user_id: str, ttl_minutes: int | None = None) -> str:
    """Mint a signed access token for ``user_id``."""
    now = datetime.now(timezone.utc)
    ttl = (
        ttl_minutes
        if ttl_minutes is not None
        else jwt_settings.access_token_ttl_minutes
    )
    payload = {
        "sub": user_id,
        "iss": jwt_settings.issuer,
        "aud": jwt_settings.audience,
        "iat": int(now.timestamp()),
        "exp": int(now.timestamp()) + ttl * 60,
    }
    return jwt.encode(
        payload, jwt_settings.secret_key, algorithm=jwt_settings.algorithm
    )


def validate_token(token: str) -> AccessTokenPayload:
    """Validate an access token and return its claims.

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is invalid
    """
    try:
        payload = jwt.decode(
            token,
            jwt_settings.secret_key,
            algorithms=[jwt_settings.algorithm],
            issuer=jwt_settings.issuer,
            audience=jwt_settings.audience,
        )
        return AccessTokenPayload.from_dict(payload)

    except ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except JWTClaimsError as e:
        raise TokenInvalidError(f"Invalid token claims: {e}") from e
    except JWTError as e:
        raise TokenInvalidError(f"Invalid token: {e}") from e
