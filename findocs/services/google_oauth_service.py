"""
Google OAuth2 client for the authorization-code and refresh-token grants.

Handles the token endpoint, the userinfo endpoint and (optionally) token
revocation. The server never stores tokens; callers put them in the signed
credential envelope.
"""
import logging
import time
from typing import Any, Dict, Optional

import httpx

from findocs.core.config import settings

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"

# Used when Google omits expires_in
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


class GoogleOAuthError(Exception):
    """Token or profile request to Google failed."""


class GoogleOAuthService:
    """Service for Google OAuth2 token management."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS, transport=self.transport)

    def _require_client_config(self) -> None:
        if not settings.GOOGLE_CLIENT_ID or not settings.GOOGLE_CLIENT_SECRET:
            raise GoogleOAuthError(
                "Missing Google OAuth configuration (GOOGLE_CLIENT_ID or GOOGLE_CLIENT_SECRET)"
            )

    @staticmethod
    def expiry_from_response(token_response: Dict[str, Any], now: Optional[float] = None) -> int:
        """Absolute expiry (epoch seconds) for a token response."""
        now = time.time() if now is None else now
        try:
            expires_in = int(token_response.get("expires_in") or DEFAULT_TOKEN_LIFETIME_SECONDS)
        except (TypeError, ValueError):
            expires_in = DEFAULT_TOKEN_LIFETIME_SECONDS
        return int(now) + expires_in

    async def _post_token(self, data: Dict[str, str], grant: str) -> Dict[str, Any]:
        self._require_client_config()
        payload = {
            "client_id": settings.GOOGLE_CLIENT_ID,
            "client_secret": settings.GOOGLE_CLIENT_SECRET,
            **data,
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data=payload,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Google {grant} request failed: {type(e).__name__}")
            raise GoogleOAuthError(f"Token endpoint unreachable during {grant}") from e

        if response.status_code != 200:
            error_code = None
            try:
                error_code = response.json().get("error")
            except ValueError:
                pass
            logger.warning(f"Google {grant} rejected: status={response.status_code} error={error_code}")
            raise GoogleOAuthError(f"Token endpoint returned {response.status_code} during {grant}")

        return response.json()

    async def exchange_code_for_tokens(self, code: str) -> Dict[str, Any]:
        """
        Exchange an authorization code for access and refresh tokens.

        Args:
            code: Authorization code sent by the client

        Returns:
            Token response with access_token, refresh_token, expires_in

        Raises:
            GoogleOAuthError: If the exchange fails
        """
        logger.info(f"Exchanging authorization code (prefix={code[:8]}...)")
        tokens = await self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": settings.GOOGLE_REDIRECT_URI,
            },
            grant="authorization_code",
        )
        logger.info(
            "Token exchange successful: has_access_token=%s has_refresh_token=%s",
            bool(tokens.get("access_token")),
            bool(tokens.get("refresh_token")),
        )
        return tokens

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """
        Mint a new access token from a refresh token.

        Google normally omits refresh_token in the response; callers keep
        the one they already have in that case.
        """
        if not refresh_token:
            raise GoogleOAuthError("No refresh token available")
        tokens = await self._post_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            grant="refresh_token",
        )
        if not tokens.get("access_token"):
            raise GoogleOAuthError("Refresh response did not include an access token")
        return tokens

    async def get_user_info(self, access_token: str) -> Dict[str, Any]:
        """Fetch id, email, name and picture for the token's owner."""
        try:
            async with self._client() as client:
                response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            logger.error(f"Failed to get user info: {type(e).__name__}")
            raise GoogleOAuthError("Failed to get user information") from e

    async def revoke_token(self, token: str) -> bool:
        try:
            async with self._client() as client:
                response = await client.post(
                    GOOGLE_REVOKE_URL,
                    data={"token": token},
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
        except httpx.HTTPError as e:
            logger.warning(f"Token revocation request failed: {type(e).__name__}")
            return False
        if response.status_code != 200:
            logger.warning(f"Token revocation returned status {response.status_code}")
            return False
        return True


google_oauth_service = GoogleOAuthService()
