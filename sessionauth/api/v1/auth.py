from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from sessionauth.config import settings
from sessionauth.database import get_db
from sessionauth.dependencies import get_auth_service, get_current_user
from sessionauth.schemas.auth import (
    RegisterRequest, LoginRequest, RefreshTokenRequest,
    LogoutRequest, ChangePasswordRequest, CurrentUser,
)
from sessionauth.schemas.common import SuccessResponse, success_response
from sessionauth.services.auth_service import AuthService
from sessionauth.utils.exceptions import UnauthorizedException
from sessionauth.utils.validators import (
    ensure_valid, validate_register, validate_change_password,
)

router = APIRouter(prefix="/auth")


# ─── Transport helpers ────────────────────────────────────────────────────────
def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def set_auth_cookies(response: Response, tokens: dict) -> None:
    common = {
        "httponly": True,
        "secure":   settings.is_production,
        "samesite": "strict",
    }
    response.set_cookie(
        settings.ACCESS_COOKIE_NAME, tokens["accessToken"],
        max_age=int(settings.access_token_ttl.total_seconds()), **common,
    )
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME, tokens["refreshToken"],
        max_age=int(settings.refresh_token_ttl.total_seconds()), **common,
    )


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(settings.ACCESS_COOKIE_NAME)
    response.delete_cookie(settings.REFRESH_COOKIE_NAME)


def presented_refresh_token(request: Request, body_token: str | None) -> str | None:
    """Cookie first, then the optional JSON body field."""
    return request.cookies.get(settings.REFRESH_COOKIE_NAME) or body_token


# ─── POST /auth/register ──────────────────────────────────────────────────────
@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user account",
    response_model=SuccessResponse,
)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """
    Register a new user.
    - Email must be unique.
    - Username: min 3 characters, letters, numbers and underscores.
    - Password: min 6 characters, 1 uppercase, 1 lowercase, 1 number.
    """
    ensure_valid(validate_register(data.username, data.password))
    user = service.register(db, str(data.email), data.username, data.password)
    return success_response("User registered successfully", {"user": user})


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login and receive access + refresh tokens",
    response_model=SuccessResponse,
)
def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate user.
    Tokens are returned in the body and also set as httpOnly cookies.
    """
    user_agent = request.headers.get("user-agent") or "unknown"
    result = service.login(db, str(data.email), data.password, user_agent, client_ip(request))
    set_auth_cookies(response, result)
    return success_response("User logged in successfully", {**result, "tokenType": "Bearer"})


# ─── POST /auth/refresh ───────────────────────────────────────────────────────
@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    summary="Rotate the refresh token and get a new access token",
    response_model=SuccessResponse,
)
def refresh_token(
    request: Request,
    response: Response,
    data: RefreshTokenRequest | None = None,
    db: Session = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    token = presented_refresh_token(request, data.refreshToken if data else None)
    if not token:
        raise UnauthorizedException("Refresh token not found")

    tokens = service.refresh(db, token)
    set_auth_cookies(response, tokens)
    return success_response("Tokens refreshed successfully", {**tokens, "tokenType": "Bearer"})


# ─── POST /auth/logout ────────────────────────────────────────────────────────
@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Revoke the current session (logout)",
    response_model=SuccessResponse,
)
def logout(
    request: Request,
    response: Response,
    data: LogoutRequest | None = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    token = presented_refresh_token(request, data.refreshToken if data else None)
    if token:
        service.logout(db, current_user.id, token)

    clear_auth_cookies(response)
    return success_response("Logout successful", None)


# ─── GET /auth/me ─────────────────────────────────────────────────────────────
@router.get(
    "/me",
    status_code=status.HTTP_200_OK,
    summary="Get current authenticated user profile",
    response_model=SuccessResponse,
)
def get_me(current_user: CurrentUser = Depends(get_current_user)):
    return success_response("User profile retrieved", {"user": current_user.model_dump()})


# ─── POST /auth/change-password ───────────────────────────────────────────────
@router.post(
    "/change-password",
    status_code=status.HTTP_200_OK,
    summary="Change password (requires current password, authenticated)",
    response_model=SuccessResponse,
)
def change_password(
    data: ChangePasswordRequest,
    response: Response,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    """
    Change the password and log out every device.
    The auth cookies are cleared; the client must log in again.
    """
    ensure_valid(validate_change_password(data.currentPassword, data.newPassword, data.confirmPassword))
    service.change_password(
        db, current_user.id,
        data.currentPassword, data.newPassword, data.confirmPassword,
    )
    clear_auth_cookies(response)
    return success_response("Password changed successfully. Please login again.", None)
