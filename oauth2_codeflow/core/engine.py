"""
OAuth2 authorization code flow engine.

The OAuth2 class composes a provider Adapter, an application Callback and
a resolved configuration. It handles:

- Login: redirect the user agent to the provider's authorization page,
  storing a fresh state value for this user agent.
- Callback: verify the state (CSRF protection, single use), have the
  adapter exchange the code, then pass the token to the Callback.
- Refresh: exchange a refresh token for a new access token.
"""

import hmac
import logging
import os
from typing import Callable, Sequence

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from starlette.responses import Response

from oauth2_codeflow.config import OAuthConfig
from oauth2_codeflow.core.domain import (
    AuthorizationCode,
    CallbackQuery,
    RefreshToken,
    TokenResponse,
)
from oauth2_codeflow.core.exceptions import (
    ConfigurationError,
    ExchangeFailureError,
    MalformedRequestError,
    OAuthFlowError,
    StateMismatchError,
)
from oauth2_codeflow.core.ports import (
    Adapter,
    Callback,
    CallbackResult,
    StateStore,
    as_callback,
    run_callback,
)
from oauth2_codeflow.infrastructure.state_cookie import PrivateCookieStateStore


logger = logging.getLogger(__name__)


class OAuth2:
    """
    OAuth2 client flow for one provider configuration.

    Holds no mutable state after construction and can be shared by any
    number of concurrent requests.
    """

    def __init__(
        self,
        adapter: Adapter,
        callback: Callback | Callable[[Request, TokenResponse], CallbackResult],
        config: OAuthConfig,
        state_store: StateStore,
        login_scopes: Sequence[str] = (),
    ):
        """
        Args:
            adapter: Provider strategy (URI construction, token exchange)
            callback: Callback object, or a function taking (request, token)
            config: Resolved OAuth configuration
            state_store: Per-user-agent storage for the state value
            login_scopes: Scopes requested by the login route

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        config.validate()
        self.adapter = adapter
        self.callback = as_callback(callback)
        self.config = config
        self.state_store = state_store
        self.login_scopes = tuple(login_scopes)

    @classmethod
    def from_env(
        cls,
        adapter: Adapter,
        callback: Callback | Callable[[Request, TokenResponse], CallbackResult],
        name: str,
        login_scopes: Sequence[str] = (),
    ) -> "OAuth2":
        """
        Build an engine from a named configuration in the environment.

        The state cookie key comes from <NAME>_STATE_KEY, falling back to
        OAUTH_STATE_KEY. The state cookie is named "<name>_oauth2_state".

        Raises:
            ConfigurationError: If configuration or key is missing or invalid
        """
        config = OAuthConfig.from_env(name)
        prefix = name.upper().replace("-", "_")
        state_key = os.getenv(f"{prefix}_STATE_KEY") or os.getenv("OAUTH_STATE_KEY")
        if not state_key:
            raise ConfigurationError(
                f"{prefix}_STATE_KEY or OAUTH_STATE_KEY must be set for OAuth state cookies"
            )
        state_store = PrivateCookieStateStore(
            state_key, cookie_name=f"{name}_oauth2_state"
        )
        return cls(adapter, callback, config, state_store, login_scopes)

    # =========================================================================
    # Login
    # =========================================================================

    def get_redirect(
        self, request: Request, scopes: Sequence[str] | None = None
    ) -> RedirectResponse:
        """
        Prepare an authorization redirect.

        Stores a new state value for this user agent and redirects to the
        provider's authorization page. Adapter errors are not caught.

        Args:
            request: Incoming request
            scopes: Scopes to request; defaults to the login scopes.
                An empty sequence is valid.

        Returns:
            Redirect to the authorization URI
        """
        if scopes is None:
            scopes = self.login_scopes

        uri, state = self.adapter.authorization_uri(self.config, list(scopes))

        response = RedirectResponse(url=uri, status_code=status.HTTP_302_FOUND)
        self.state_store.save(request, response, state)

        logger.info(
            f"Redirecting to {self.config.name} authorization endpoint",
            extra={"config": self.config.name, "scopes": list(scopes)},
        )
        return response

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh(self, refresh_token: str) -> TokenResponse:
        """
        Request a new access token given a refresh token.

        The refresh token must come from an earlier TokenResponse. Adapter
        errors are not caught.
        """
        return await self.adapter.exchange_code(
            self.config, RefreshToken(refresh_token)
        )

    # =========================================================================
    # Callback
    # =========================================================================

    async def handle_callback(self, request: Request) -> Response:
        """
        Handle the redirect back from the provider.

        Always returns a response: the Callback's, a 400 when the request
        is rejected, or a 500 when the Callback raises. The stored state is
        invalidated once it has been checked, whatever the outcome.
        """
        state_checked = False
        try:
            query = self._parse_query(request)
            state_checked = True
            self._validate_state(request, query.state)
            token = await self._exchange(query.code)
            token = token.with_scope_fallback(query.scope)
        except OAuthFlowError as e:
            response = self._reject(e)
        else:
            response = await self._dispatch(request, token)

        if state_checked:
            self.state_store.discard(request, response)
        return response

    def _parse_query(self, request: Request) -> CallbackQuery:
        params = request.query_params
        try:
            return CallbackQuery.model_validate(
                {key: params[key] for key in ("code", "state", "scope") if key in params}
            )
        except ValidationError as e:
            error = params.get("error")
            if error:
                logger.warning(
                    f"Provider returned authorization error: {error}",
                    extra={
                        "config": self.config.name,
                        "error": error,
                        "error_description": params.get("error_description"),
                    },
                )
            raise MalformedRequestError(f"Invalid callback query: {e}")

    def _validate_state(self, request: Request, presented: str) -> None:
        with self.state_store.open(request) as slot:
            stored = slot.take()
        if stored is None:
            raise StateMismatchError("No stored state for this user agent")
        if not hmac.compare_digest(stored.encode(), presented.encode()):
            raise StateMismatchError("Presented state does not match stored state")

    async def _exchange(self, code: str) -> TokenResponse:
        try:
            return await self.adapter.exchange_code(
                self.config, AuthorizationCode(code)
            )
        except Exception as e:
            logger.error(
                f"Token exchange failed: {e!r}",
                extra={"config": self.config.name},
                exc_info=True,
            )
            raise ExchangeFailureError("Token exchange failed") from e

    async def _dispatch(self, request: Request, token: TokenResponse) -> Response:
        try:
            return await run_callback(self.callback, request, token)
        except Exception as e:
            logger.error(
                f"OAuth callback failed: {e!r}",
                extra={"config": self.config.name},
                exc_info=True,
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"status": "error", "message": "Internal server error"},
            )

    def _reject(self, error: OAuthFlowError) -> Response:
        if not isinstance(error, ExchangeFailureError):
            logger.warning(
                f"Rejected OAuth callback: {error}",
                extra={"config": self.config.name, "reason": error.reason},
            )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"status": "error", "message": "Invalid OAuth callback"},
        )

    # =========================================================================
    # Routes
    # =========================================================================

    def router(self, callback_path: str, login_path: str | None = None) -> APIRouter:
        """
        Create routes for this engine.

        Mount with `app.include_router(engine.router(...))`.

        Args:
            callback_path: Path of the registered redirect URI
            login_path: Optional path of a login route using the login scopes

        Returns:
            Router with the callback (and login) GET routes
        """
        router = APIRouter(tags=["oauth"])

        async def callback(request: Request):
            return await self.handle_callback(request)

        router.add_api_route(
            callback_path,
            callback,
            methods=["GET"],
            name=f"{self.config.name}_oauth_callback",
        )

        if login_path is not None:

            async def login(request: Request):
                return self.get_redirect(request)

            router.add_api_route(
                login_path,
                login,
                methods=["GET"],
                name=f"{self.config.name}_oauth_login",
            )

        return router
