"""
Example FastAPI application using the OAuth2 engine.

Wires a GitHub login from environment variables:
- GITHUB_CLIENT_ID, GITHUB_CLIENT_SECRET, GITHUB_REDIRECT_URI
- GITHUB_PROVIDER (e.g. "github") or GITHUB_AUTH_URI + GITHUB_TOKEN_URI
- OAUTH_STATE_KEY (see generate_state_key)

GET /login/github starts the flow, GET /auth/github is the redirect URI.
"""

import logging
import os
from contextlib import asynccontextmanager

# Configure logging FIRST, before other local imports
from oauth2_codeflow.logging_config import setup_global_logging

setup_global_logging()

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from oauth2_codeflow.core.domain import TokenResponse  # noqa: E402
from oauth2_codeflow.core.engine import OAuth2  # noqa: E402
from oauth2_codeflow.infrastructure.basic_adapter import BasicAdapter  # noqa: E402

logger = logging.getLogger(__name__)


def on_github_login(request: Request, token: TokenResponse) -> JSONResponse:
    """
    Complete a GitHub login.

    A real application would persist the token or look up the GitHub user
    here. The token itself is never sent back to the browser.
    """
    logger.info(
        "GitHub login completed",
        extra={"token_type": token.token_type, "scope": token.scope},
    )
    return JSONResponse(
        content={
            "status": "success",
            "token_type": token.token_type,
            "scopes": token.scopes,
            "expires_in": token.expires_in,
        }
    )


github = OAuth2.from_env(
    BasicAdapter(),
    on_github_login,
    "github",
    login_scopes=["read:user"],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    logger.info("Application starting up...")
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="OAuth2 Code Flow Example",
    description="GitHub login through the OAuth2 authorization code flow",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(github.router("/auth/github", login_path="/login/github"))


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8080))
    uvicorn.run(app, host="0.0.0.0", port=port)
