"""
Private cookie storage for the OAuth2 state value.

The state is encrypted and authenticated with Fernet (cryptography library)
before it is placed in a cookie, so the user agent can neither read nor
forge it. Fernet's embedded timestamp bounds how long a login attempt
stays valid.
"""

import logging

from cryptography.fernet import Fernet, InvalidToken
from starlette.requests import Request
from starlette.responses import Response

from oauth2_codeflow.core.exceptions import ConfigurationError
from oauth2_codeflow.core.ports import StateSlot


logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = "oauth2_state"

# Login attempts older than this are rejected (seconds)
DEFAULT_MAX_AGE = 600


def generate_state_key() -> str:
    """
    Generate a new Fernet key for state cookies.

    Returns:
        URL-safe base64-encoded 32-byte key
    """
    key_bytes = Fernet.generate_key()
    result: str = key_bytes.decode()
    return result


class PrivateCookieStateStore:
    """
    StateStore keeping the state in an encrypted, HttpOnly cookie.

    Each engine should use its own cookie name so that several engines in
    one application never overwrite each other's state.
    """

    def __init__(
        self,
        secret_key: str,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        max_age: int = DEFAULT_MAX_AGE,
        secure: bool | None = None,
        path: str = "/",
    ):
        """
        Args:
            secret_key: Fernet key (see generate_state_key)
            cookie_name: Name of the state cookie
            max_age: Maximum age of a state value, in seconds
            secure: Force the Secure attribute on or off. None sets it
                only when the request arrived over HTTPS.
            path: Cookie path

        Raises:
            ConfigurationError: If the key is missing or not a valid Fernet key
        """
        if not secret_key:
            raise ConfigurationError("A state encryption key is required")
        try:
            self._fernet = Fernet(secret_key.encode())
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid state encryption key: {e}")

        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure
        self.path = path

    def _is_secure(self, request: Request) -> bool:
        if self.secure is not None:
            return self.secure
        return request.url.scheme == "https"

    def save(self, request: Request, response: Response, state: str) -> None:
        """Encrypt `state` and set it as the state cookie on `response`."""
        encrypted = self._fernet.encrypt(state.encode()).decode()
        response.set_cookie(
            self.cookie_name,
            encrypted,
            max_age=self.max_age,
            path=self.path,
            secure=self._is_secure(request),
            httponly=True,
            samesite="lax",
        )

    def load(self, request: Request) -> str | None:
        """
        Read and decrypt the state cookie.

        Returns:
            The stored state, or None if there is no cookie or it is
            expired, tampered with, or encrypted under another key
        """
        ciphertext = request.cookies.get(self.cookie_name)
        if not ciphertext:
            return None
        try:
            return self._fernet.decrypt(ciphertext.encode(), ttl=self.max_age).decode()
        except InvalidToken:
            logger.warning(
                "Ignoring state cookie: expired or failed authentication",
                extra={"cookie_name": self.cookie_name},
            )
            return None

    def open(self, request: Request) -> StateSlot:
        """Open the state slot for this request's user agent."""
        return StateSlot(self.load(request))

    def discard(self, request: Request, response: Response) -> None:
        """Delete the state cookie on `response`."""
        response.delete_cookie(
            self.cookie_name,
            path=self.path,
            secure=self._is_secure(request),
            httponly=True,
            samesite="lax",
        )
