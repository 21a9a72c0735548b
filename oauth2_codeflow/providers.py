"""
Well-known OAuth2 provider endpoints.

Lets configuration name a provider instead of spelling out its
authorization and token endpoints.
"""

from dataclasses import dataclass

from oauth2_codeflow.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class StaticProvider:
    """Authorization and token endpoints of a provider."""

    name: str
    auth_uri: str
    token_uri: str


ADOBE = StaticProvider(
    name="Adobe",
    auth_uri="https://ims-na1.adobelogin.com/ims/authorize/v2",
    token_uri="https://ims-na1.adobelogin.com/ims/token/v3",
)
DISCORD = StaticProvider(
    name="Discord",
    auth_uri="https://discord.com/api/oauth2/authorize",
    token_uri="https://discord.com/api/oauth2/token",
)
FACEBOOK = StaticProvider(
    name="Facebook",
    auth_uri="https://www.facebook.com/v3.1/dialog/oauth",
    token_uri="https://graph.facebook.com/v3.1/oauth/access_token",
)
GITHUB = StaticProvider(
    name="GitHub",
    auth_uri="https://github.com/login/oauth/authorize",
    token_uri="https://github.com/login/oauth/access_token",
)
GOOGLE = StaticProvider(
    name="Google",
    auth_uri="https://accounts.google.com/o/oauth2/v2/auth",
    token_uri="https://oauth2.googleapis.com/token",
)
MICROSOFT = StaticProvider(
    name="Microsoft",
    auth_uri="https://login.microsoftonline.com/common/oauth2/v2.0/authorize",
    token_uri="https://login.microsoftonline.com/common/oauth2/v2.0/token",
)
REDDIT = StaticProvider(
    name="Reddit",
    auth_uri="https://www.reddit.com/api/v1/authorize",
    token_uri="https://www.reddit.com/api/v1/access_token",
)
SPOTIFY = StaticProvider(
    name="Spotify",
    auth_uri="https://accounts.spotify.com/authorize",
    token_uri="https://accounts.spotify.com/api/token",
)
# Strava echoes `scope` in the callback query, not in the token response
STRAVA = StaticProvider(
    name="Strava",
    auth_uri="https://www.strava.com/oauth/authorize",
    token_uri="https://www.strava.com/oauth/token",
)
YAHOO = StaticProvider(
    name="Yahoo",
    auth_uri="https://api.login.yahoo.com/oauth2/request_auth",
    token_uri="https://api.login.yahoo.com/oauth2/get_token",
)

KNOWN_PROVIDERS: dict[str, StaticProvider] = {
    p.name.lower(): p
    for p in (
        ADOBE,
        DISCORD,
        FACEBOOK,
        GITHUB,
        GOOGLE,
        MICROSOFT,
        REDDIT,
        SPOTIFY,
        STRAVA,
        YAHOO,
    )
}


def get_provider(name: str) -> StaticProvider:
    """
    Look up a well-known provider by name (case-insensitive).

    Raises:
        ConfigurationError: If the provider is unknown
    """
    provider = KNOWN_PROVIDERS.get(name.strip().lower())
    if provider is None:
        raise ConfigurationError(
            f"Unknown OAuth provider: {name}. "
            f"Known: {sorted(p.name for p in KNOWN_PROVIDERS.values())}"
        )
    return provider
