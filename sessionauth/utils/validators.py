import re

from sessionauth.utils.exceptions import ValidationException

PASSWORD_MIN_LENGTH = 6
USERNAME_MIN_LENGTH = 3
_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")


# ─── Helpers ──────────────────────────────────────────────────────────────────
def _error(field: str, message: str) -> dict:
    return {"field": field, "message": message}


def validate_required(value: str | None, field: str, label: str) -> list[dict]:
    if value is None or not value.strip():
        return [_error(field, f"{label} is required")]
    return []


def validate_password_strength(value: str, field: str = "password") -> list[dict]:
    """Minimum length plus at least one lowercase, one uppercase and one digit."""
    errors = []
    if len(value) < PASSWORD_MIN_LENGTH:
        errors.append(_error(field, f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"))
    if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
        errors.append(_error(
            field,
            "Password must contain at least one uppercase letter, one lowercase letter, and one number",
        ))
    return errors


def validate_username(value: str) -> list[dict]:
    errors = validate_required(value, "username", "Username")
    if errors:
        return errors
    if len(value) < USERNAME_MIN_LENGTH:
        errors.append(_error("username", f"Username must be at least {USERNAME_MIN_LENGTH} characters long"))
    if not _USERNAME_RE.match(value):
        errors.append(_error("username", "Username can only contain letters, numbers and underscores"))
    return errors


# ─── Request validators ───────────────────────────────────────────────────────
def validate_register(username: str, password: str) -> list[dict]:
    errors = validate_username(username)
    errors += validate_required(password, "password", "Password") or validate_password_strength(password)
    return errors


def validate_change_password(current_password: str, new_password: str, confirm_password: str) -> list[dict]:
    errors = validate_required(current_password, "currentPassword", "Current password")
    errors += (
        validate_required(new_password, "newPassword", "New password")
        or validate_password_strength(new_password, field="newPassword")
    )
    errors += validate_required(confirm_password, "confirmPassword", "Confirm password")
    return errors


def ensure_valid(errors: list[dict]) -> None:
    """Raise a 400 ValidationException carrying every collected error."""
    if errors:
        raise ValidationException(errors)
