"""
Identity verification for tokens issued by the external identity provider.

The storefront never stores credentials. Each request carries a bearer
token from the identity provider; it is verified with python-jose and
reduced to an ``Identity`` snapshot (id, display name, email, admin flag).
Admin access is granted to subjects listed in ``APP_ADMIN_USER_IDS`` or
tokens carrying a ``role`` claim of ``admin``.
"""

from dataclasses import dataclass
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from storefront.core.config import Settings
from storefront.core.logging import get_logger

logger = get_logger(__name__)

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


class SecurityError(Exception):
    """Base exception for security-related errors."""

    def __init__(self, message: str, code: str, **context: Any):
        super().__init__(message)
        self.code = code
        self.context = context


class TokenError(SecurityError):
    """Raised when an identity token is missing, expired or invalid."""

    pass


@dataclass(frozen=True)
class Identity:
    """Verified caller, as asserted by the identity provider."""

    id: str
    name: str
    email: str
    is_admin: bool = False


def decode_identity_token(token: str, settings: Settings) -> Identity:
    """
    Verify an identity provider token and build the caller identity.

    Args:
        token: Encoded bearer token
        settings: Application settings holding key, algorithm and claims

    Returns:
        Identity of the caller

    Raises:
        TokenError: If the token is empty, expired, invalid or has no subject
    """
    if not token:
        raise TokenError("Token cannot be empty", code="EMPTY_TOKEN")

    options = {"verify_aud": settings.jwt_audience is not None}
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=options,
        )
    except ExpiredSignatureError as e:
        logger.warning("Identity token has expired")
        raise TokenError("Token has expired", code="TOKEN_EXPIRED") from e
    except JWTError as e:
        logger.warning(
            "Invalid identity token",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise TokenError("Invalid token", code="TOKEN_INVALID") from e

    subject: Optional[str] = payload.get("sub")
    if not subject:
        raise TokenError("Token missing 'sub' claim", code="TOKEN_NO_SUBJECT")

    email = payload.get("email") or ""
    name = payload.get("name") or email.split("@")[0] or subject
    is_admin = subject in settings.admin_ids or payload.get("role") == "admin"

    return Identity(id=subject, name=name, email=email, is_admin=is_admin)
