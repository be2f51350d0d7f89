"""
Shared test fixtures.

Key fixtures:
- make_token / make_auth_header: mint caller JWTs with any claims
- oauth_config / oauth_credentials: a declared OAuth block and the
  deployment-injected client fields that complete it
- token_store: an InMemoryTokenStore
- make_server: factory for XTRNServer instances with test collaborators

Test modules:
- test_capabilities.py: ConfigSpec validation and CapabilitySet derivation
- test_context.py: context variants and ContextBuilder preconditions
- test_registry.py: tags, duplicate names, resolution, freezing
- test_server.py: the full dispatch pipeline for every capability combination
- test_transport.py: the FastMCP adapter, in-memory and over HTTP
- test_auth.py: caller JWT validation
"""

import datetime

import jwt
import pytest
from pydantic import BaseModel

from xtrn.config import settings
from xtrn.server import XTRNServer
from xtrn.stores import InMemoryTokenStore

TEST_SECRET = settings.jwt_secret_key
TEST_ALGORITHM = settings.jwt_algorithm


class SearchRequest(BaseModel):
    query: str
    limit: int | None = None


@pytest.fixture
def search_schema() -> type[SearchRequest]:
    """Request schema shared by the search-style test tools."""
    return SearchRequest


# ---------------------------------------------------------------------------
# Caller tokens
# ---------------------------------------------------------------------------
@pytest.fixture
def make_token():
    """
    Factory fixture to generate caller JWTs.

    Usage in tests:
        def test_something(make_token):
            token = make_token(sub="alice")
    """

    def _make_token(
        sub: str = "test-user",
        secret: str = TEST_SECRET,
        algorithm: str = TEST_ALGORITHM,
        exp_hours: float = 1.0,
        extra_claims: dict | None = None,
        include_exp: bool = True,
        include_sub: bool = True,
    ) -> str:
        now = datetime.datetime.now(datetime.timezone.utc)
        payload: dict = {"iat": now}

        if include_sub:
            payload["sub"] = sub
        if include_exp:
            payload["exp"] = now + datetime.timedelta(hours=exp_hours)
        if extra_claims:
            payload.update(extra_claims)

        return jwt.encode(payload, secret, algorithm=algorithm)

    return _make_token


@pytest.fixture
def make_auth_header(make_token):
    """Returns a full "Bearer <token>" string."""

    def _make_auth_header(**kwargs) -> str:
        return f"Bearer {make_token(**kwargs)}"

    return _make_auth_header


# ---------------------------------------------------------------------------
# OAuth
# ---------------------------------------------------------------------------
@pytest.fixture
def oauth_config() -> dict:
    return {
        "provider": "google",
        "authorization_url": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_url": "https://t",
        "scopes": ["email", "profile"],
    }


@pytest.fixture
def oauth_credentials() -> dict:
    return {
        "client_id": "c1",
        "client_secret": "s1",
        "callback_url": "https://cb",
    }


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------
@pytest.fixture
def make_server(token_store, oauth_credentials):
    """
    Factory for servers wired to the test token store and OAuth credentials.

    Usage in tests:
        server = make_server(user_config=[{"key": "timezone", "type": "string"}])
    """

    def _make_server(
        name: str = "test-server",
        user_config: list | None = None,
        oauth_config: dict | None = None,
        **kwargs,
    ) -> XTRNServer:
        kwargs.setdefault("token_resolver", token_store)
        kwargs.setdefault("oauth_credentials", oauth_credentials)
        return XTRNServer(
            name=name,
            version="1.0.0",
            config={"user_config": user_config or [], "oauth_config": oauth_config},
            **kwargs,
        )

    return _make_server
