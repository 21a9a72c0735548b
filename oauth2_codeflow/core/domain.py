"""
Core domain models for the OAuth2 authorization code flow.

Token requests, token responses (RFC 6749 §5.1) and the parsed
callback query. These models are independent of any provider or
HTTP client.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class AuthorizationCode:
    """Grant used for the authorization code exchange (RFC 6749 §4.1.3)."""

    code: str

    grant_type: ClassVar[str] = "authorization_code"


@dataclass(frozen=True)
class RefreshToken:
    """Grant used to refresh an access token (RFC 6749 §6)."""

    token: str = field(repr=False)

    grant_type: ClassVar[str] = "refresh_token"


# The grants that can be exchanged with a token endpoint
TokenRequest = AuthorizationCode | RefreshToken


class TokenResponse(BaseModel):
    """
    The server's response to a successful token exchange.

    Named fields follow RFC 6749 §5.1. Every other member of the provider's
    JSON body is kept in `extras` unchanged, since many providers return
    non-standard fields (user ids, id_token, ...) that applications rely on.
    """

    access_token: str = Field(description="Access token issued by the provider")
    token_type: str = Field(description="Token type (RFC 6749 §7.1)")
    expires_in: int | None = Field(
        default=None, description="Lifetime in seconds, if the provider disclosed it"
    )
    refresh_token: str | None = Field(default=None, description="Refresh token")
    scope: str | None = Field(
        default=None,
        description="Space-separated scopes; only required when they differ "
        "from the requested set",
    )
    extras: dict[str, Any] = Field(
        default_factory=dict, description="Additional provider fields"
    )

    model_config = ConfigDict(frozen=True)

    NAMED_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"access_token", "token_type", "expires_in", "refresh_token", "scope"}
    )

    @classmethod
    def from_provider(cls, payload: dict[str, Any]) -> "TokenResponse":
        """
        Create a TokenResponse from a decoded token endpoint body.

        Args:
            payload: JSON object returned by the token endpoint

        Returns:
            TokenResponse with unrecognized members moved to `extras`

        Raises:
            pydantic.ValidationError: If required fields are missing or invalid
        """
        named = {k: v for k, v in payload.items() if k in cls.NAMED_FIELDS}
        extras = {k: v for k, v in payload.items() if k not in cls.NAMED_FIELDS}
        return cls(**named, extras=extras)

    def to_dict(self) -> dict[str, Any]:
        """Flatten back into a provider-shaped dict (unset fields omitted)."""
        data = self.model_dump(exclude={"extras"}, exclude_none=True)
        data.update(self.extras)
        return data

    @property
    def scopes(self) -> list[str] | None:
        """
        Granted scopes as a list.

        None means the provider did not say, which is not the same as
        "no scopes".
        """
        if self.scope is None:
            return None
        return self.scope.split()

    def with_scope_fallback(self, scope: str | None) -> "TokenResponse":
        """
        Fill in `scope` from another source if the provider omitted it.

        Some providers (at least Strava) send `scope` as a callback query
        parameter instead of in the token response. An empty string
        returned by the provider still counts as present.
        """
        if self.scope is not None or scope is None:
            return self
        return self.model_copy(update={"scope": scope})


class CallbackQuery(BaseModel):
    """
    Query parameters of the redirect back from the provider.

    `scope` is nonstandard here but used as a fallback (see
    TokenResponse.with_scope_fallback). Unknown parameters are ignored.
    """

    code: str = Field(min_length=1, description="Authorization code")
    state: str = Field(min_length=1, description="Anti-CSRF state value")
    scope: str | None = Field(default=None, description="Granted scopes")

    model_config = ConfigDict(extra="ignore")
