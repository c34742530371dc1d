from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError, ExpiredSignatureError
from pydantic import ValidationError as PydanticValidationError

from findocs.core.config import settings
from findocs.schemas.user_schemas import CredentialEnvelope


class EnvelopeError(Exception):
    pass


class InvalidSignatureError(EnvelopeError):
    pass


class EnvelopeExpiredError(EnvelopeError):
    pass


class MalformedEnvelopeError(EnvelopeError):
    pass


# Signs the envelope claims into a JWT that expires independently of the Google token
def encode_envelope(envelope: CredentialEnvelope, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(days=settings.ENVELOPE_EXPIRE_DAYS))
    to_encode: Dict[str, Any] = {
        "sub": envelope.user_id,
        "email": envelope.email,
        "name": envelope.name,
        "picture": envelope.picture,
        "access_token": envelope.access_token,
        "refresh_token": envelope.refresh_token,
        "token_expiry": envelope.token_expiry,
        "iat": int(now.timestamp()),
        "exp": expire,
    }
    try:
        return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    except Exception as e:
        raise ValueError("Failed to create credential envelope") from e


# Verifies signature and expiry, then rebuilds the envelope from the claims
def decode_envelope(token: str) -> CredentialEnvelope:
    if not token:
        raise MalformedEnvelopeError("Empty envelope")

    try:
        jwt.get_unverified_claims(token)
    except JWTError as e:
        raise MalformedEnvelopeError("Envelope is not a valid token") from e

    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        raise EnvelopeExpiredError("Envelope has expired") from e
    except JWTError as e:
        raise InvalidSignatureError("Envelope signature did not verify") from e

    try:
        return CredentialEnvelope(
            user_id=payload["sub"],
            email=payload["email"],
            name=payload.get("name"),
            picture=payload.get("picture"),
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or "",
            token_expiry=payload["token_expiry"],
        )
    except (KeyError, TypeError, PydanticValidationError) as e:
        raise MalformedEnvelopeError("Envelope claims are incomplete") from e
