from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class GoogleLoginRequest(BaseModel):
    code: Optional[str] = Field(None, description="Authorization code returned by Google")


class SessionUser(BaseModel):
    id: str = Field(..., description="Google account id")
    email: EmailStr = Field(..., description="Email address of the user")
    name: Optional[str] = Field(None, description="Display name")
    picture: Optional[str] = Field(None, description="Avatar URL")


class CredentialEnvelope(BaseModel):
    """Identity plus delegated Google tokens, carried in the signed cookie."""

    user_id: str
    email: EmailStr
    name: Optional[str] = None
    picture: Optional[str] = None
    access_token: str
    refresh_token: str = ""
    # Epoch seconds at which the Google access token stops being valid
    token_expiry: int

    def to_user(self) -> SessionUser:
        return SessionUser(id=self.user_id, email=self.email, name=self.name, picture=self.picture)


class FreshCredential(BaseModel):
    envelope: CredentialEnvelope
    refreshed: bool = False
    # Re-signed envelope to send back as the cookie; only set when refreshed
    encoded: Optional[str] = None

    @property
    def access_token(self) -> str:
        return self.envelope.access_token

    @property
    def email(self) -> str:
        return self.envelope.email


class LoginResponse(BaseModel):
    success: bool = True
    user: SessionUser


class AuthCheckResponse(BaseModel):
    authenticated: bool
    user: Optional[SessionUser] = None
