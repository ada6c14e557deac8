"""JWT validation for bearer tokens issued by the configured OIDC provider."""

from typing import Any

import jwt
from jwt import PyJWKClient, PyJWKClientError

from .config import get_auth_settings


class TokenValidationError(Exception):
    """Raised when token validation fails."""

    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


_jwk_client: PyJWKClient | None = None


def get_jwk_client() -> PyJWKClient:
    """Get the process-wide JWKS client (keys cached for an hour)."""
    global _jwk_client
    if _jwk_client is None:
        settings = get_auth_settings()
        _jwk_client = PyJWKClient(settings.jwks_uri, cache_jwk_set=True, lifespan=3600)
    return _jwk_client


def get_signing_key(token: str) -> Any:
    """Resolve the public key matching the token's ``kid`` header."""
    try:
        return get_jwk_client().get_signing_key_from_jwt(token).key
    except PyJWKClientError as e:
        raise TokenValidationError(f"Failed to get signing key: {str(e)}")
    except jwt.exceptions.DecodeError as e:
        raise TokenValidationError(f"Invalid token format: {str(e)}")


def validate_token(token: str) -> dict[str, Any]:
    """Validate an access token and return its claims.

    Checks the RS256 signature, expiry, audience and issuer, and requires the
    ``sub`` claim used as the user ID.

    Raises:
        TokenValidationError: If the token is invalid or auth is not configured.
    """
    settings = get_auth_settings()

    if not settings.is_configured():
        raise TokenValidationError(
            "Authentication not configured. Set AUTH_ISSUER and AUTH_AUDIENCE.",
            status_code=500,
        )

    try:
        claims = jwt.decode(
            token,
            get_signing_key(token),
            algorithms=["RS256"],
            audience=settings.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
                "verify_iss": False,  # checked below against both slash variants
            },
        )
    except jwt.ExpiredSignatureError:
        raise TokenValidationError("Token has expired")
    except jwt.InvalidAudienceError:
        raise TokenValidationError("Invalid token audience")
    except jwt.InvalidTokenError as e:
        raise TokenValidationError(f"Invalid token: {str(e)}")

    if claims.get("iss", "") not in settings.valid_issuers:
        raise TokenValidationError(f"Invalid token issuer: {claims.get('iss')}")

    return claims


def clear_jwks_cache() -> None:
    """Drop the JWKS client, e.g. after key rotation or between tests."""
    global _jwk_client
    _jwk_client = None
