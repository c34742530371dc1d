import logging
import time
from typing import Optional, Tuple

from findocs.core.config import settings
from findocs.core.errors import OAuthExchangeError, SessionExpiredError
from findocs.core.security import encode_envelope
from findocs.schemas.user_schemas import CredentialEnvelope, FreshCredential
from findocs.services.google_oauth_service import (
    GoogleOAuthError,
    GoogleOAuthService,
    google_oauth_service,
)

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, oauth: Optional[GoogleOAuthService] = None):
        self.oauth = oauth or google_oauth_service

    # Exchanges a Google authorization code and builds the signed envelope for the cookie
    async def login_with_google(self, code: str) -> Tuple[CredentialEnvelope, str]:
        if not code:
            raise OAuthExchangeError("Missing authorization code")

        try:
            tokens = await self.oauth.exchange_code_for_tokens(code)
        except GoogleOAuthError as e:
            logger.warning(f"Authorization code exchange failed: {e}")
            raise OAuthExchangeError("Failed to exchange authorization code") from e

        access_token = tokens.get("access_token")
        if not access_token:
            raise OAuthExchangeError("No access token received")

        refresh_token = tokens.get("refresh_token") or ""
        if not refresh_token:
            logger.warning("No refresh token received - user may need to re-consent")

        try:
            user_info = await self.oauth.get_user_info(access_token)
        except GoogleOAuthError as e:
            raise OAuthExchangeError("Failed to get user information") from e

        if not user_info.get("id") or not user_info.get("email"):
            raise OAuthExchangeError("Invalid user info from Google")

        envelope = CredentialEnvelope(
            user_id=str(user_info["id"]),
            email=user_info["email"],
            name=user_info.get("name"),
            picture=user_info.get("picture"),
            access_token=access_token,
            refresh_token=refresh_token,
            token_expiry=self.oauth.expiry_from_response(tokens),
        )
        logger.info(f"Google login completed for {envelope.email}")
        return envelope, encode_envelope(envelope)

    # Refreshes the Google access token when it is within the expiry buffer.
    # Concurrent requests may each refresh; Google refresh tokens are reusable
    # so no per-user serialization is done.
    async def ensure_fresh(self, envelope: CredentialEnvelope, now: Optional[float] = None) -> FreshCredential:
        now = time.time() if now is None else now
        remaining = envelope.token_expiry - now

        if remaining >= settings.TOKEN_REFRESH_BUFFER_SECONDS:
            return FreshCredential(envelope=envelope)

        logger.info(f"Access token for {envelope.email} expires in {int(remaining)}s, refreshing")
        if not envelope.refresh_token:
            logger.warning(f"No refresh token stored for {envelope.email}")
            raise SessionExpiredError()

        try:
            tokens = await self.oauth.refresh_access_token(envelope.refresh_token)
        except GoogleOAuthError as e:
            logger.warning(f"Token refresh failed for {envelope.email}: {e}")
            raise SessionExpiredError() from e

        refreshed = envelope.model_copy(
            update={
                "access_token": tokens["access_token"],
                "refresh_token": tokens.get("refresh_token") or envelope.refresh_token,
                "token_expiry": self.oauth.expiry_from_response(tokens, now=now),
            }
        )
        return FreshCredential(envelope=refreshed, refreshed=True, encoded=encode_envelope(refreshed))

    # Upstream revocation is opt-in; by default logout only clears the cookie
    async def logout(self, envelope: Optional[CredentialEnvelope]) -> bool:
        if not settings.REVOKE_ON_LOGOUT or envelope is None:
            return False
        token = envelope.refresh_token or envelope.access_token
        revoked = await self.oauth.revoke_token(token)
        logger.info(f"Upstream revocation for {envelope.email}: {'ok' if revoked else 'failed'}")
        return revoked


auth_service = AuthService()
