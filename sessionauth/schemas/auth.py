from pydantic import BaseModel, EmailStr


# ─── Request Schemas ──────────────────────────────────────────────────────────
# Shape only; password and username rules live in sessionauth.utils.validators
class RegisterRequest(BaseModel):
    email:    EmailStr
    username: str
    password: str


class LoginRequest(BaseModel):
    email:    EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    refreshToken: str | None = None


class LogoutRequest(BaseModel):
    refreshToken: str | None = None


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword:     str
    confirmPassword: str


# ─── Response Schemas ─────────────────────────────────────────────────────────
class CurrentUser(BaseModel):
    """Identity exposed to route handlers once a request is authenticated."""
    id:       int
    username: str
    email:    str

    model_config = {"from_attributes": True}
