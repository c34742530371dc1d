from fastapi import APIRouter, Depends, Response, status
from typing import Dict, Optional
import logging

from findocs.core.auth_dependencies import (
    clear_envelope_cookie,
    get_optional_session,
    set_envelope_cookie,
)
from findocs.schemas.user_schemas import (
    AuthCheckResponse,
    CredentialEnvelope,
    GoogleLoginRequest,
    LoginResponse,
)
from findocs.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["Authentication"]
)


# Exchanges a Google authorization code and sets the credential cookie
@router.post("/google", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def google_login(payload: GoogleLoginRequest, response: Response) -> LoginResponse:
    envelope, encoded = await auth_service.login_with_google(payload.code or "")
    set_envelope_cookie(response, encoded)
    return LoginResponse(user=envelope.to_user())


# Reports whether the cookie holds a valid envelope; never refreshes
@router.get("/check", response_model=AuthCheckResponse, response_model_exclude_none=True)
async def check_auth(session: Optional[CredentialEnvelope] = Depends(get_optional_session)) -> AuthCheckResponse:
    if session is None:
        return AuthCheckResponse(authenticated=False)
    return AuthCheckResponse(authenticated=True, user=session.to_user())


# Clears the credential cookie
@router.post("/logout")
async def logout(
    response: Response,
    session: Optional[CredentialEnvelope] = Depends(get_optional_session),
) -> Dict[str, bool]:
    await auth_service.logout(session)
    clear_envelope_cookie(response)
    if session is not None:
        logger.info(f"Logged out {session.email}")
    return {"success": True}
