"""
Exceptions for the OAuth2 authorization code flow.

Two families live here:
- OAuthFlowError and its subclasses reject an incoming callback request.
  The engine converts every one of them into a 400 response.
- AdapterError and its subclasses are raised by provider adapters when
  URI construction or the token exchange fails.
"""


class ConfigurationError(ValueError):
    """
    Raised when OAuth configuration is missing or invalid.

    Only raised at startup (engine construction or config loading),
    never while handling a request.
    """

    pass


class OAuthFlowError(Exception):
    """Base exception for a rejected OAuth callback."""

    reason = "rejected"


class MalformedRequestError(OAuthFlowError):
    """Callback query is missing `code` or `state`, or cannot be parsed."""

    reason = "malformed_request"


class StateMismatchError(OAuthFlowError):
    """
    CSRF check failed.

    Either no state was stored for this user agent, or the stored state
    differs from the one presented. May indicate an attack, an expired
    login attempt, or a replayed callback.
    """

    reason = "state_mismatch"


class ExchangeFailureError(OAuthFlowError):
    """
    The adapter could not exchange the authorization code.

    The adapter's own error is chained as __cause__ and is only ever logged.
    """

    reason = "exchange_failure"


class AdapterError(Exception):
    """Base exception for provider adapter failures."""

    pass


class LoginRedirectError(AdapterError):
    """Raised when an authorization URI cannot be built."""

    pass


class TransportError(AdapterError):
    """Raised when the token endpoint cannot be reached."""

    pass


class TokenEndpointError(AdapterError):
    """
    Raised when the token endpoint answers with an error.

    Covers non-2xx responses and 2xx responses carrying an OAuth `error`
    member (RFC 6749 §5.2).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error: str | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.body = body


class InvalidTokenResponseError(AdapterError):
    """Raised when the token endpoint body is not a valid token response."""

    pass
