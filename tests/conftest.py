"""
Shared test configuration and fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from cryptography.fernet import Fernet
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from oauth2_codeflow.config import OAuthConfig
from oauth2_codeflow.core.domain import TokenResponse
from oauth2_codeflow.core.engine import OAuth2
from oauth2_codeflow.infrastructure.state_cookie import PrivateCookieStateStore

TEST_STATE = "abc123"
TEST_AUTH_URL = f"https://provider.example.com/auth?client_id=test-client&state={TEST_STATE}"
CALLBACK_PATH = "/oauth/callback"
LOGIN_PATH = "/oauth/login"
STATE_COOKIE = "test_oauth2_state"


@pytest.fixture
def oauth_config():
    """A valid OAuth configuration."""
    return OAuthConfig(
        name="test",
        client_id="test-client",
        client_secret="test-secret",
        auth_uri="https://provider.example.com/auth",
        token_uri="https://provider.example.com/token",
        redirect_uri="http://testserver/oauth/callback",
    )


@pytest.fixture
def state_key():
    """A fresh Fernet key for state cookies."""
    return Fernet.generate_key().decode()


@pytest.fixture
def state_store(state_key):
    """Private cookie state store."""
    return PrivateCookieStateStore(state_key, cookie_name=STATE_COOKIE)


@pytest.fixture
def token_response():
    """Token response without a scope."""
    return TokenResponse(access_token="tok", token_type="bearer")


@pytest.fixture
def mock_adapter(token_response):
    """
    Mock adapter.

    authorization_uri returns a fixed URI and state; exchange_code returns
    token_response.
    """
    adapter = MagicMock()
    adapter.authorization_uri.return_value = (TEST_AUTH_URL, TEST_STATE)
    adapter.exchange_code = AsyncMock(return_value=token_response)
    return adapter


@pytest.fixture
def received_tokens():
    """Tokens passed to the callback, in call order."""
    return []


@pytest.fixture
def callback(received_tokens):
    """Callback recording the token and echoing its scope."""

    def on_login(request, token):
        received_tokens.append(token)
        return JSONResponse(content={"status": "success", "scope": token.scope})

    return on_login


@pytest.fixture
def engine(mock_adapter, callback, oauth_config, state_store):
    """OAuth2 engine with default login scopes."""
    return OAuth2(
        mock_adapter,
        callback,
        oauth_config,
        state_store,
        login_scopes=["read", "write"],
    )


@pytest.fixture
def client(engine):
    """Test client for an app with the engine's routes mounted."""
    app = FastAPI()
    app.include_router(engine.router(CALLBACK_PATH, login_path=LOGIN_PATH))
    return TestClient(app)


def decrypt_state_cookie(client: TestClient, key: str, name: str = STATE_COOKIE) -> str | None:
    """Decrypt the state cookie held by the test client, if any."""
    value = client.cookies.get(name)
    if not value:
        return None
    return Fernet(key.encode()).decrypt(value.strip('"').encode()).decode()
