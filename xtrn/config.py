"""
Process configuration loaded from environment variables.

Uses pydantic-settings so every deployment knob is typed and read from the
environment (or a local .env file). Nothing in here describes a particular
tool server: per-server declarations live in xtrn.config_spec. This module
only covers what a deployment injects:

- XTRN_HOST, XTRN_PORT, XTRN_LOG_LEVEL for the HTTP transport
- XTRN_JWT_SECRET_KEY / XTRN_JWT_ALGORITHM for caller authentication
- XTRN_OAUTH_CLIENT_ID / XTRN_OAUTH_CLIENT_SECRET / XTRN_OAUTH_CALLBACK_URL,
  the OAuth client fields that are never part of a server's declared config
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Deployment settings with environment variable bindings.

    Each field maps to an environment variable with the XTRN_ prefix.
    For example, `port` reads from XTRN_PORT and `oauth_client_id` reads
    from XTRN_OAUTH_CLIENT_ID.
    """

    # --- Transport ---

    # "0.0.0.0" is required inside containers; use "127.0.0.1" locally
    # to only accept local connections.
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "info"

    # --- Caller authentication ---

    # Signing key for caller bearer tokens. Local development default only.
    jwt_secret_key: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"

    # Caller identity used when a call arrives without an HTTP request
    # (stdio or in-memory transports), where there is no bearer token to read.
    local_caller: str = "local"

    # --- OAuth client (deployment-injected) ---

    # Unset means "not provisioned": servers that declare OAuth will then
    # fail each call with MissingOAuthArtifact instead of running handlers
    # with a half-built descriptor.
    oauth_client_id: str | None = None
    oauth_client_secret: str | None = None
    oauth_callback_url: str | None = None

    model_config = {
        "env_prefix": "XTRN_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


settings = Settings()
