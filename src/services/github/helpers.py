import time
from typing import Any, Dict, Optional, Tuple

import httpx
import jwt

from src.core.config import Settings, settings
from src.exceptions.pr_review_exceptions import ConfigurationError, GitHubAuthenticationException
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Installation tokens live one hour; refresh a little early
TOKEN_REFRESH_MARGIN_SECONDS = 300


class GithubHelpers:
    """Authentication helpers for the GitHub API"""

    def __init__(self, app_settings: Optional[Settings] = None):
        self.settings = app_settings or settings
        self._token_cache: Dict[int, Tuple[str, float]] = {}

    def generate_jwt_token(self) -> str:
        """Generate JWT token for GitHub App authentication"""
        app_id = self.settings.GITHUB_APP_ID
        private_key = self.settings.GITHUB_APP_PRIVATE_KEY

        if not app_id or not private_key:
            raise ConfigurationError(
                "GitHub App ID and Private Key must be configured", setting="GITHUB_APP_ID"
            )

        now = int(time.time())
        payload = {
            'iat': now - 60,
            'exp': now + (10 * 60),
            'iss': app_id
        }

        token = jwt.encode(payload, private_key.replace("\\n", "\n"), algorithm='RS256')
        logger.debug("Generated JWT token for GitHub App authentication")
        return token

    async def generate_installation_token(self, installation_id: Optional[int] = None) -> str:
        """
        Return a token for API calls.

        A static ``GITHUB_TOKEN`` wins (GitHub Actions, personal tokens).
        Otherwise an installation token is minted from the App JWT and cached
        until shortly before it expires.
        """
        if self.settings.GITHUB_TOKEN:
            return self.settings.GITHUB_TOKEN

        if installation_id is None:
            raise ConfigurationError(
                "GITHUB_TOKEN is not set and the event carries no installation id",
                setting="GITHUB_TOKEN",
            )

        cached = self._token_cache.get(installation_id)
        if cached and cached[1] > time.time():
            return cached[0]

        endpoint = f"/app/installations/{installation_id}/access_tokens"
        async with httpx.AsyncClient(timeout=30.0) as client:
            response = await client.post(
                f"{self.settings.GITHUB_API_URL}{endpoint}",
                headers={
                    "Authorization": f"Bearer {self.generate_jwt_token()}",
                    "Accept": "application/vnd.github+json",
                },
            )

        if response.status_code != 201:
            logger.error(
                f"Failed to create installation token: {response.status_code} {response.text}"
            )
            raise GitHubAuthenticationException(endpoint=endpoint)

        data: Dict[str, Any] = response.json()
        token = data["token"]
        self._token_cache[installation_id] = (token, time.time() + 3600 - TOKEN_REFRESH_MARGIN_SECONDS)
        logger.info(f"Generated installation token for installation {installation_id}")
        return token
