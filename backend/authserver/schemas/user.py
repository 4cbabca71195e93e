"""User profile Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate, validates_schema

from authserver.services.auth.dto import ProfileUpdateIn

USERNAME_RULES = [
    validate.Length(min=3, error="Username must be at least 3 characters long"),
    validate.Length(max=30, error="Username must not exceed 30 characters"),
    validate.Regexp(
        r"^[a-zA-Z0-9]+$", error="Username must contain only alphanumeric characters"
    ),
]
NAME_RULES = [
    validate.Length(min=1, max=100, error="Name must be between 1 and 100 characters"),
    validate.Regexp(r"^[a-zA-Z\s\-]+$", error="Name can only contain letters, spaces, and hyphens"),
]
PHONE_RULES = validate.Regexp(
    r"^\+[1-9]\d{1,14}$",
    error="Phone must be in valid international format (e.g., +1234567890)",
)


def _phone_or_blank(value: str) -> None:
    # An empty string clears the stored phone number
    if value != "":
        PHONE_RULES(value)


class UserProfileSchema(Schema):
    """Sanitized user representation (no password digest)."""

    id = fields.String(required=True)
    email = fields.Email(required=True)
    username = fields.String(allow_none=True)
    name = fields.String(allow_none=True)
    phone = fields.String(allow_none=True)
    is_active = fields.Boolean(required=True)
    created_at = fields.DateTime(required=True)
    updated_at = fields.DateTime(required=True)


class ProfileUpdateSchema(Schema):
    """Partial profile update; at least one field must be provided."""

    class Meta:
        unknown = EXCLUDE

    username = fields.String(validate=USERNAME_RULES)
    name = fields.String(validate=NAME_RULES)
    phone = fields.String(validate=_phone_or_blank)

    @validates_schema
    def require_one_field(self, data: dict[str, Any], **_: Any) -> None:
        if not data:
            raise ValidationError("At least one field must be provided for update")

    @post_load
    def to_dto(self, data: dict[str, Any], **_: Any) -> ProfileUpdateIn:
        if data.get("phone") == "":
            data["phone"] = None
        return ProfileUpdateIn(**data)
