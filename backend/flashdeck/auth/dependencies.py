"""FastAPI dependencies for authentication."""

from typing import Annotated
from fastapi import Depends, HTTPException, Header, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from .config import get_auth_settings
from .token_validator import validate_token, TokenValidationError


bearer_scheme = HTTPBearer(
    scheme_name="Bearer",
    description="Access token from the configured identity provider",
    auto_error=False,
)


class CurrentUser(BaseModel):
    """The authenticated user; ``user_id`` owns decks and status records."""

    user_id: str
    name: str | None = None
    email: str | None = None

    @classmethod
    def from_token_claims(cls, claims: dict) -> "CurrentUser":
        """Create a CurrentUser from decoded token claims."""
        return cls(
            user_id=claims["sub"],
            name=claims.get("name"),
            email=claims.get("email"),
        )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    x_user_id: str | None = Header(None, description="User ID header (dev fallback)"),
) -> CurrentUser:
    """
    Resolve the calling user.

    With AUTH_ENABLED=false the X-User-Id header is trusted as-is (local dev
    and tests). Otherwise a valid Bearer token is required.

    Raises:
        HTTPException: 401 if the header/token is missing or invalid.
    """
    settings = get_auth_settings()

    if not settings.enabled:
        if x_user_id:
            return CurrentUser(user_id=x_user_id, name="Local Dev User")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication disabled but no X-User-Id header provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = validate_token(credentials.credentials)
        return CurrentUser.from_token_claims(claims)
    except TokenValidationError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
