from fastapi import Depends, Request, Response
from typing import Optional
import logging

from findocs.core.config import settings
from findocs.core.errors import AuthenticationError
from findocs.core.security import decode_envelope, EnvelopeError
from findocs.schemas.user_schemas import CredentialEnvelope, FreshCredential
from findocs.services.auth_service import auth_service

logger = logging.getLogger(__name__)

COOKIE_MAX_AGE_SECONDS = 7 * 24 * 60 * 60


# Reads the envelope from the cookie, falling back to a Bearer header
def extract_token(request: Request) -> Optional[str]:
    token = request.cookies.get(settings.COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return None


def set_envelope_cookie(response: Response, value: str) -> None:
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=value,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
        max_age=COOKIE_MAX_AGE_SECONDS,
    )


def clear_envelope_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
    )


# Decodes the envelope without refreshing; None when absent or invalid
async def get_optional_session(request: Request) -> Optional[CredentialEnvelope]:
    token = extract_token(request)
    if not token:
        return None
    try:
        return decode_envelope(token)
    except EnvelopeError as e:
        # Reason stays in the debug log only
        logger.debug("Envelope rejected: %s", type(e).__name__)
        return None


async def get_current_envelope(request: Request) -> CredentialEnvelope:
    token = extract_token(request)
    if not token:
        raise AuthenticationError("Authentication required")
    try:
        return decode_envelope(token)
    except EnvelopeError as e:
        logger.debug("Envelope rejected: %s", type(e).__name__)
        raise AuthenticationError()


# Runs the refresh protocol once per request and re-issues the cookie when it refreshed
async def get_fresh_credential(
    request: Request,
    response: Response,
    envelope: CredentialEnvelope = Depends(get_current_envelope),
) -> FreshCredential:
    credential = await auth_service.ensure_fresh(envelope)
    if credential.refreshed and credential.encoded:
        set_envelope_cookie(response, credential.encoded)
        # Error handlers build their own response; they re-apply this value
        request.state.refreshed_envelope = credential.encoded
    return credential
