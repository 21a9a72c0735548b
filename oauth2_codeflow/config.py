"""
OAuth2 client configuration.

A resolved configuration holds everything an adapter needs to talk to one
provider: client credentials, endpoints and the registered redirect URI.
Configurations are loaded from environment variables, one named set per
provider, and validated at startup.
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlsplit

from oauth2_codeflow.core.exceptions import ConfigurationError
from oauth2_codeflow.providers import get_provider


logger = logging.getLogger(__name__)

CLIENT_SECRET_BASIC = "client_secret_basic"
CLIENT_SECRET_POST = "client_secret_post"
AUTH_METHODS = (CLIENT_SECRET_BASIC, CLIENT_SECRET_POST)


def _is_absolute_url(url: str | None) -> bool:
    if not url:
        return False
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


@dataclass(frozen=True)
class OAuthConfig:
    """
    OAuth configuration for a single provider.

    Immutable once resolved. `name` identifies the configuration (and
    derives its environment variable prefix and state cookie name).
    """

    name: str
    client_id: str
    client_secret: str = ""
    auth_uri: str = ""
    token_uri: str = ""
    redirect_uri: str = ""
    auth_method: str = CLIENT_SECRET_BASIC

    def __repr__(self) -> str:
        return (
            f"OAuthConfig(name={self.name!r}, client_id={self.client_id!r}, "
            f"auth_uri={self.auth_uri!r}, token_uri={self.token_uri!r}, "
            f"redirect_uri={self.redirect_uri!r}, auth_method={self.auth_method!r})"
        )

    @classmethod
    def for_provider(
        cls,
        provider: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        name: str | None = None,
        auth_method: str = CLIENT_SECRET_BASIC,
    ) -> "OAuthConfig":
        """Build a configuration for a well-known provider."""
        static = get_provider(provider)
        return cls(
            name=name or static.name.lower(),
            client_id=client_id,
            client_secret=client_secret,
            auth_uri=static.auth_uri,
            token_uri=static.token_uri,
            redirect_uri=redirect_uri,
            auth_method=auth_method,
        )

    @classmethod
    def from_env(cls, name: str) -> "OAuthConfig":
        """
        Load a named configuration from environment variables.

        For name "github" the variables are GITHUB_CLIENT_ID,
        GITHUB_CLIENT_SECRET, GITHUB_REDIRECT_URI, optional
        GITHUB_AUTH_METHOD, and either GITHUB_PROVIDER (a well-known
        provider) or GITHUB_AUTH_URI and GITHUB_TOKEN_URI. Explicit URIs
        take precedence over the provider's.

        Raises:
            ConfigurationError: If the configuration is missing or invalid
        """
        prefix = name.upper().replace("-", "_")

        auth_uri = os.getenv(f"{prefix}_AUTH_URI", "")
        token_uri = os.getenv(f"{prefix}_TOKEN_URI", "")
        provider = os.getenv(f"{prefix}_PROVIDER")
        if provider:
            static = get_provider(provider)
            auth_uri = auth_uri or static.auth_uri
            token_uri = token_uri or static.token_uri

        config = cls(
            name=name,
            client_id=os.getenv(f"{prefix}_CLIENT_ID", ""),
            client_secret=os.getenv(f"{prefix}_CLIENT_SECRET", ""),
            auth_uri=auth_uri,
            token_uri=token_uri,
            redirect_uri=os.getenv(f"{prefix}_REDIRECT_URI", ""),
            auth_method=os.getenv(f"{prefix}_AUTH_METHOD", CLIENT_SECRET_BASIC),
        )
        config.validate()
        logger.info(f"Loaded OAuth configuration '{name}'")
        return config

    def validate(self) -> None:
        """
        Validate the configuration. Call at startup to fail fast.

        Raises:
            ConfigurationError: If anything required is missing or invalid
        """
        if not self.name:
            raise ConfigurationError("OAuth configuration name is required")
        if not self.client_id:
            raise ConfigurationError(f"[{self.name}] client_id is required")
        if not self.client_secret:
            raise ConfigurationError(f"[{self.name}] client_secret is required")
        for field_name in ("auth_uri", "token_uri", "redirect_uri"):
            if not _is_absolute_url(getattr(self, field_name)):
                raise ConfigurationError(
                    f"[{self.name}] {field_name} must be an absolute http(s) URL"
                )
        if self.auth_method not in AUTH_METHODS:
            raise ConfigurationError(
                f"[{self.name}] unsupported auth_method '{self.auth_method}'. "
                f"Supported: {list(AUTH_METHODS)}"
            )
