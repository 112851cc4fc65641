import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from jose import jwt, JWTError

from app.core.config import settings

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    def current_user_id(self) -> Optional[str]:
        ...


class StaticIdentity:
    def __init__(self, user_id: Optional[str]):
        self.user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self.user_id


class BearerTokenIdentity:
    """Identity taken from the `sub` claim of an HS256 access token."""

    def __init__(self, token: Optional[str]):
        self.token = token
        self._resolved = False
        self._user_id: Optional[str] = None

    def _decode(self) -> Optional[str]:
        if not self.token:
            return None
        options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
        try:
            payload = jwt.decode(
                self.token,
                settings.SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
                audience=settings.JWT_AUDIENCE,
                options=options,
            )
        except JWTError as e:
            logger.warning(f"Rejected access token: {e}")
            return None
        return payload.get("sub")

    def current_user_id(self) -> Optional[str]:
        if not self._resolved:
            self._user_id = self._decode()
            self._resolved = True
        return self._user_id


def create_access_token(user_id: str, expires_delta_minutes: int = 60) -> str:
    payload = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_delta_minutes),
    }
    if settings.JWT_AUDIENCE:
        payload["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
