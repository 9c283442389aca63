from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from sessionauth.config import settings
from sessionauth.database import get_db
from sessionauth.models.user import User
from sessionauth.schemas.auth import CurrentUser
from sessionauth.services.auth_service import AuthService, auth_service
from sessionauth.utils.exceptions import UnauthorizedException

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)

INVALID_TOKEN = "Invalid or expired token"


def get_auth_service() -> AuthService:
    return auth_service


# ─── Token extraction ─────────────────────────────────────────────────────────
def extract_access_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
) -> str | None:
    """The access-token cookie wins over an Authorization: Bearer header."""
    cookie_token = request.cookies.get(settings.ACCESS_COOKIE_NAME)
    if cookie_token:
        return cookie_token
    if credentials:
        return credentials.credentials
    return None


# ─── Get Current User ─────────────────────────────────────────────────────────
def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """
    Validate the access token and return the current user's identity.

    The user row is re-read on every request so that a lock or deletion
    after the token was issued takes effect immediately.
    Raises 401 if the token is missing, invalid, expired, or the account
    is gone or locked.
    """
    token = extract_access_token(request, credentials)
    if not token:
        raise UnauthorizedException("Authentication required")

    try:
        payload = service.access_codec.verify(token)
        user_id = int(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise UnauthorizedException(INVALID_TOKEN)

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        # Same answer as a bad token: don't reveal that the account vanished
        raise UnauthorizedException(INVALID_TOKEN)

    if user.isLocked:
        raise UnauthorizedException("Account is locked")

    return CurrentUser.model_validate(user)
