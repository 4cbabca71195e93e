"""Validation rules of the request schemas."""

from __future__ import annotations

import pytest
from authserver.schemas import LogoutSchema, ProfileUpdateSchema, SignupSchema
from authserver.services.auth.dto import UNSET, LogoutIn, SignupIn
from marshmallow import ValidationError

VALID_SIGNUP = {"email": "ana@example.com", "password": "Str0ng!Pass"}


def test_signup_loads_dto_and_drops_unknown_fields():
    dto = SignupSchema().load({**VALID_SIGNUP, "username": "ana", "is_admin": True})
    assert isinstance(dto, SignupIn)
    assert dto.username == "ana"
    assert dto.name is None


@pytest.mark.parametrize(
    "password",
    ["short1!", "alllower1!", "ALLUPPER1!", "NoDigits!!", "NoSpecial11"],
)
def test_signup_rejects_weak_passwords(password):
    with pytest.raises(ValidationError) as excinfo:
        SignupSchema().load({**VALID_SIGNUP, "password": password})
    assert "password" in excinfo.value.messages


def test_signup_requires_email_and_password():
    with pytest.raises(ValidationError) as excinfo:
        SignupSchema().load({})
    assert excinfo.value.messages["email"] == ["Email is required"]
    assert excinfo.value.messages["password"] == ["Password is required"]


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("email", "not-an-email"),
        ("username", "ab"),
        ("username", "bad_name"),
        ("username", "x" * 31),
        ("name", "R2D2"),
        ("phone", "600000000"),
        ("phone", "+0123"),
    ],
)
def test_signup_rejects_malformed_fields(field, value):
    with pytest.raises(ValidationError) as excinfo:
        SignupSchema().load({**VALID_SIGNUP, field: value})
    assert field in excinfo.value.messages


def test_profile_update_requires_one_field():
    with pytest.raises(ValidationError) as excinfo:
        ProfileUpdateSchema().load({"email": "ignored@example.com"})
    assert excinfo.value.messages["_schema"] == ["At least one field must be provided for update"]


def test_profile_update_blank_phone_clears_it():
    dto = ProfileUpdateSchema().load({"phone": ""})
    assert dto.changes() == {"phone": None}
    assert dto.username is UNSET


def test_profile_update_rejects_bad_phone():
    with pytest.raises(ValidationError):
        ProfileUpdateSchema().load({"phone": "12345"})


def test_logout_token_is_optional():
    assert LogoutSchema().load({}) == LogoutIn(refresh_token=None)
