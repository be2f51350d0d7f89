"""
OAuth artifacts handed to handlers on servers that declare OAuth.

Two things end up on the context:

- ctx.oauth: an OAuthClient, the declared OAuthConfig merged with the
  deployment-injected OAuthCredentials (client id, secret, callback URL).
  Handlers use it to refresh access tokens against token_url.
- ctx.token: a Token for the calling user, fetched per call from a
  TokenResolver. The core only consumes it; storing and refreshing tokens
  is the resolver's business.

The authorization-code exchange that produces tokens happens elsewhere.
"""

from typing import Any, Mapping, Protocol

from pydantic import BaseModel, ConfigDict

from xtrn.config import Settings
from xtrn.config_spec import HttpURL, OAuthConfig


class OAuthCredentials(BaseModel):
    """Client fields injected at deployment time rather than declared."""

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str
    callback_url: HttpURL

    @classmethod
    def from_settings(cls, settings: Settings) -> "OAuthCredentials | None":
        """Read XTRN_OAUTH_* settings; None unless all three are provisioned."""
        if not (
            settings.oauth_client_id
            and settings.oauth_client_secret
            and settings.oauth_callback_url
        ):
            return None
        return cls(
            client_id=settings.oauth_client_id,
            client_secret=settings.oauth_client_secret,
            callback_url=settings.oauth_callback_url,
        )


class OAuthClient(BaseModel):
    """The full OAuth client descriptor exposed as ctx.oauth."""

    model_config = ConfigDict(frozen=True)

    provider: str
    authorization_url: HttpURL
    token_url: HttpURL
    scopes: tuple[str, ...] = ()
    client_id: str
    client_secret: str
    callback_url: HttpURL

    @classmethod
    def combine(cls, declared: OAuthConfig, credentials: OAuthCredentials) -> "OAuthClient":
        return cls(**declared.model_dump(), **credentials.model_dump())


class Token(BaseModel):
    """
    A resolved OAuth token for one caller.

    Only refresh_token is required; the other standard token response fields
    are optional and any provider-specific extras are kept as-is.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    refresh_token: str
    access_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int | None = None
    expires_at: int | None = None
    scope: str | None = None


class TokenResolver(Protocol):
    """
    Fetches the token for a caller of a given server.

    Implementations raise xtrn.errors.TokenUnavailable when no token exists.
    Resolution may block on I/O; the core awaits it and lets cancellation of
    the inbound call propagate into it.
    """

    async def resolve(self, server_name: str, caller: str) -> Token | Mapping[str, Any]: ...
