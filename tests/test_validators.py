"""
tests/test_validators.py -- Boundary validation rules.
"""

from __future__ import annotations

import pytest

from sessionauth.utils.exceptions import ValidationException
from sessionauth.utils.validators import (
    ensure_valid,
    validate_change_password,
    validate_password_strength,
    validate_register,
    validate_username,
)


class TestPasswordStrength:
    def test_strong_password_passes(self) -> None:
        assert validate_password_strength("Abc123") == []

    @pytest.mark.parametrize("password", ["abc123", "ABC123", "Abcdef", "Ab1"])
    def test_weak_passwords_fail(self, password: str) -> None:
        errors = validate_password_strength(password)
        assert errors
        assert all(e["field"] == "password" for e in errors)

    def test_field_name_is_configurable(self) -> None:
        errors = validate_password_strength("short", field="newPassword")
        assert {e["field"] for e in errors} == {"newPassword"}


class TestUsername:
    def test_valid_username(self) -> None:
        assert validate_username("john_doe42") == []

    def test_too_short(self) -> None:
        assert validate_username("jo")[0]["message"] == "Username must be at least 3 characters long"

    def test_bad_characters(self) -> None:
        messages = [e["message"] for e in validate_username("john-doe")]
        assert "Username can only contain letters, numbers and underscores" in messages

    def test_blank_is_required_error(self) -> None:
        assert validate_username("   ") == [{"field": "username", "message": "Username is required"}]


class TestRequestValidators:
    def test_register_collects_every_error(self) -> None:
        errors = validate_register("x", "weak")
        fields = {e["field"] for e in errors}
        assert fields == {"username", "password"}

    def test_change_password_only_checks_new_password_strength(self) -> None:
        assert validate_change_password("whatever", "NewPass1", "anything") == []
        errors = validate_change_password("whatever", "weak", "weak")
        assert {e["field"] for e in errors} == {"newPassword"}

    def test_change_password_requires_all_fields(self) -> None:
        errors = validate_change_password("", "NewPass1", "")
        assert {e["field"] for e in errors} == {"currentPassword", "confirmPassword"}

    def test_ensure_valid_raises_with_details(self) -> None:
        with pytest.raises(ValidationException) as exc_info:
            ensure_valid([{"field": "password", "message": "nope"}])
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail["error"]["details"] == [{"field": "password", "message": "nope"}]

    def test_ensure_valid_passes_on_empty_list(self) -> None:
        ensure_valid([])
