"""
Generic OAuth2 adapter for standards-compliant providers.

Builds authorization URIs and performs token exchanges as described in
RFC 6749, using authlib for parameter encoding and httpx for the network
round trip.
"""

import logging
from typing import Any, Sequence
from urllib.parse import quote_plus, urlsplit

import httpx
from authlib.common.security import generate_token
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri, prepare_token_request
from pydantic import ValidationError

from oauth2_codeflow.config import CLIENT_SECRET_BASIC, OAuthConfig
from oauth2_codeflow.core.domain import AuthorizationCode, TokenRequest, TokenResponse
from oauth2_codeflow.core.exceptions import (
    InvalidTokenResponseError,
    LoginRedirectError,
    TokenEndpointError,
    TransportError,
)


logger = logging.getLogger(__name__)

# 30 characters from a 62-symbol alphabet, about 178 bits of entropy
STATE_LENGTH = 30

DEFAULT_TIMEOUT = 15.0


class BasicAdapter:
    """
    Adapter for providers that follow RFC 6749 closely.

    Covers most providers (GitHub, Google, Discord, Strava, ...). Providers
    with unusual token endpoints need their own Adapter implementation.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Args:
            http_client: Client used for token exchanges. If not given, a
                short-lived client is created for each exchange.
            timeout: Timeout in seconds for per-exchange clients
        """
        self._http_client = http_client
        self._timeout = timeout

    def authorization_uri(
        self, config: OAuthConfig, scopes: Sequence[str]
    ) -> tuple[str, str]:
        """Build the authorization URI (RFC 6749 §4.1.1) with a new state."""
        parts = urlsplit(config.auth_uri)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise LoginRedirectError(
                f"Authorization endpoint is not an absolute URL: {config.auth_uri!r}"
            )

        state = generate_token(STATE_LENGTH)
        uri = prepare_grant_uri(
            config.auth_uri,
            client_id=config.client_id,
            response_type="code",
            redirect_uri=config.redirect_uri,
            scope=list(scopes) or None,
            state=state,
        )
        return uri, state

    async def exchange_code(
        self, config: OAuthConfig, token: TokenRequest
    ) -> TokenResponse:
        """
        Exchange a grant at the token endpoint.

        Raises:
            TransportError: Network failure or timeout
            TokenEndpointError: Non-2xx status or OAuth error body
            InvalidTokenResponseError: Body is not a valid token response
        """
        params: dict[str, Any] = {}
        if isinstance(token, AuthorizationCode):
            params["code"] = token.code
            params["redirect_uri"] = config.redirect_uri
        else:
            params["refresh_token"] = token.token

        headers = {
            "Accept": "application/json",
            "Content-Type": "application/x-www-form-urlencoded",
        }
        auth = None
        if config.auth_method == CLIENT_SECRET_BASIC:
            # RFC 6749 §2.3.1: credentials are form-encoded before base64
            auth = httpx.BasicAuth(
                quote_plus(config.client_id), quote_plus(config.client_secret)
            )
        else:
            params["client_id"] = config.client_id
            params["client_secret"] = config.client_secret

        body = prepare_token_request(token.grant_type, **params)

        logger.debug(
            f"Requesting token from {config.token_uri}",
            extra={"config": config.name, "grant_type": token.grant_type},
        )

        try:
            response = await self._post(
                config.token_uri, content=body, headers=headers, auth=auth
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Token request to {config.token_uri} failed: {e}")

        return self._parse_response(response)

    async def _post(self, url: str, **kwargs) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(url, **kwargs)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(url, **kwargs)

    @staticmethod
    def _parse_response(response: httpx.Response) -> TokenResponse:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        error = payload.get("error") if isinstance(payload, dict) else None

        if not response.is_success:
            raise TokenEndpointError(
                f"Token endpoint returned {response.status_code}",
                status_code=response.status_code,
                error=error,
                body=response.text,
            )
        if not isinstance(payload, dict):
            raise InvalidTokenResponseError("Token response is not a JSON object")
        if error:
            # Some providers (GitHub) report errors with a 200 status
            raise TokenEndpointError(
                f"Token endpoint returned error '{error}'",
                status_code=response.status_code,
                error=error,
                body=response.text,
            )

        try:
            return TokenResponse.from_provider(payload)
        except ValidationError as e:
            raise InvalidTokenResponseError(f"Invalid token response: {e}")
