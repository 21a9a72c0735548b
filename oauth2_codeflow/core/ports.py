"""
Port definitions (interfaces) for the OAuth2 flow engine.

Ports define the contracts between the engine and everything that is
provider- or application-specific. Infrastructure adapters implement
these ports; the engine depends only on the interfaces.
"""

import inspect
from contextlib import AbstractContextManager
from typing import Any, Awaitable, Callable, Protocol, Sequence, runtime_checkable

from starlette.requests import Request
from starlette.responses import Response

from oauth2_codeflow.config import OAuthConfig
from oauth2_codeflow.core.domain import TokenRequest, TokenResponse


class Adapter(Protocol):
    """
    Port for a provider-specific OAuth2 strategy.

    One implementation per provider. Implementations should raise
    AdapterError subclasses; the engine rejects the callback on any
    exchange failure.
    """

    def authorization_uri(
        self, config: OAuthConfig, scopes: Sequence[str]
    ) -> tuple[str, str]:
        """
        Build the authorization URI and a fresh state value (RFC 6749 §4.1.1).

        Must not perform network calls.

        Args:
            config: Resolved OAuth configuration
            scopes: Requested scopes (may be empty)

        Returns:
            Tuple of (absolute authorization URI, state)
        """
        ...

    async def exchange_code(
        self, config: OAuthConfig, token: TokenRequest
    ) -> TokenResponse:
        """
        Exchange a grant at the token endpoint (RFC 6749 §4.1.3, §6).

        Args:
            config: Resolved OAuth configuration
            token: Authorization code or refresh token grant

        Returns:
            The provider's token response
        """
        ...


CallbackResult = Response | Awaitable[Response]


@runtime_checkable
class Callback(Protocol):
    """
    Port for application logic run after a successful token exchange.

    Owns everything application-specific: persisting tokens, issuing a
    session, building the response sent back to the user agent.
    """

    def callback(self, request: Request, token: TokenResponse) -> CallbackResult:
        """Handle a completed exchange and return the HTTP response."""
        ...


class FunctionCallback:
    """Callback backed by a plain function or coroutine function."""

    def __init__(self, func: Callable[[Request, TokenResponse], CallbackResult]):
        self.func = func

    def callback(self, request: Request, token: TokenResponse) -> CallbackResult:
        return self.func(request, token)

    def __repr__(self) -> str:
        return f"FunctionCallback({self.func!r})"


def as_callback(obj: Any) -> Callback:
    """
    Coerce an object into a Callback.

    Objects with a `callback` method are returned unchanged; bare callables
    are wrapped in FunctionCallback.

    Raises:
        TypeError: If obj is neither
    """
    if isinstance(obj, Callback):
        return obj
    if callable(obj):
        return FunctionCallback(obj)
    raise TypeError(f"{obj!r} is not a callback")


async def run_callback(
    callback: Callback, request: Request, token: TokenResponse
) -> Response:
    """Invoke a callback, awaiting its result if it is a coroutine."""
    result = callback.callback(request, token)
    if inspect.isawaitable(result):
        return await result
    return result


class StateSlot(AbstractContextManager):
    """
    Scoped access to the state value stored for one user agent.

    The value can be taken at most once, and only inside the `with`
    block.
    """

    def __init__(self, value: str | None):
        self._value = value
        self._open = True
        self.consumed = False

    def take(self) -> str | None:
        """Return the stored state and mark it consumed."""
        if not self._open:
            raise RuntimeError("State slot is closed")
        value, self._value = self._value, None
        self.consumed = True
        return value

    def __exit__(self, *exc_info) -> None:
        self._open = False
        self._value = None


class StateStore(Protocol):
    """
    Port for per-user-agent storage of the outstanding state value.

    Storage must be confidential and integrity-protected, and scoped to
    the requester (never a process-global slot).
    """

    def save(self, request: Request, response: Response, state: str) -> None:
        """Persist `state` for this user agent on the outgoing response."""
        ...

    def open(self, request: Request) -> StateSlot:
        """Open the slot holding the state stored for this user agent."""
        ...

    def discard(self, request: Request, response: Response) -> None:
        """Invalidate the stored state on the outgoing response."""
        ...
