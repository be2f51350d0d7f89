"""
Caller identity from bearer JWTs.

Tool servers need a caller identity for two things: resolving the caller's
own user config values, and resolving the caller's OAuth token. Over HTTP the
transport takes that identity from the `sub` claim of a signed JWT:

    Authorization: Bearer <jwt>

    {
        "sub": "alice",          # the caller identity handed to resolvers
        "exp": 1738800000        # required: no indefinitely valid tokens
    }

Any validation failure rejects the call; there is no anonymous fallback over
HTTP. Tokens are HS256-signed with XTRN_JWT_SECRET_KEY by default.
"""

from dataclasses import dataclass

import jwt

from xtrn.config import settings


class AuthError(Exception):
    """
    Raised when a caller token fails validation.

    One exception type covers every failure (missing header, bad signature,
    expired, malformed claims). The detailed message is for server logs.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status code to return (401 for auth failures)
    """

    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class CallerIdentity:
    subject: str


def validate_token(authorization_header: str | None) -> CallerIdentity:
    """
    Validate a Bearer token from the Authorization header.

    Args:
        authorization_header: The raw header value, "Bearer <jwt-token>"

    Returns:
        CallerIdentity for the token's subject

    Raises:
        AuthError: If any validation step fails
    """
    if not authorization_header:
        raise AuthError("Missing Authorization header")

    parts = authorization_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthError("Invalid Authorization header format, expected 'Bearer <token>'")

    token = parts[1]

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Invalid token: {e}")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise AuthError("Invalid sub claim: must be a non-empty string")

    return CallerIdentity(subject=subject)
