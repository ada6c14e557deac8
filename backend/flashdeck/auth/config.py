"""Authentication configuration for OIDC bearer tokens."""

import os
from functools import lru_cache
from pydantic import BaseModel


class AuthSettings(BaseModel):
    """Authentication settings loaded from environment variables."""

    issuer: str = ""  # e.g. https://accounts.example.com/
    audience: str = ""  # API identifier expected in the aud claim
    jwks_uri_override: str = ""
    enabled: bool = True  # Set to False to use the X-User-Id header (local dev, tests)

    @property
    def jwks_uri(self) -> str:
        """JWKS endpoint; defaults to the issuer's well-known location."""
        if self.jwks_uri_override:
            return self.jwks_uri_override
        return f"{self.issuer.rstrip('/')}/.well-known/jwks.json"

    @property
    def valid_issuers(self) -> list[str]:
        """Accept the issuer with and without a trailing slash."""
        base = self.issuer.rstrip("/")
        return [base, f"{base}/"]

    def is_configured(self) -> bool:
        """Check if auth is properly configured."""
        return bool(self.issuer and self.audience)


@lru_cache()
def get_auth_settings() -> AuthSettings:
    """Get cached authentication settings from environment variables."""
    enabled_str = os.getenv("AUTH_ENABLED", "true").lower()
    enabled = enabled_str not in ("false", "0", "no", "off")

    return AuthSettings(
        issuer=os.getenv("AUTH_ISSUER", ""),
        audience=os.getenv("AUTH_AUDIENCE", ""),
        jwks_uri_override=os.getenv("AUTH_JWKS_URI", ""),
        enabled=enabled,
    )
