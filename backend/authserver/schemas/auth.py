"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_load, validate

from authserver.schemas.user import NAME_RULES, PHONE_RULES, USERNAME_RULES, UserProfileSchema
from authserver.services.auth.dto import LoginIn, LogoutIn, RefreshIn, SignupIn

PASSWORD_PATTERN = r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]"


class _InputSchema(Schema):
    class Meta:
        # Unknown keys are dropped rather than rejected
        unknown = EXCLUDE


class SignupSchema(_InputSchema):
    """Input payload for account registration."""

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255, error="Email must not exceed 255 characters"),
        error_messages={"required": "Email is required"},
    )
    password = fields.String(
        required=True,
        validate=[
            validate.Length(min=8, error="Password must be at least 8 characters long"),
            validate.Regexp(
                PASSWORD_PATTERN,
                error="Password must include uppercase, lowercase, number and special character",
            ),
        ],
        error_messages={"required": "Password is required"},
    )
    username = fields.String(load_default=None, validate=USERNAME_RULES)
    name = fields.String(load_default=None, validate=NAME_RULES)
    phone = fields.String(load_default=None, validate=PHONE_RULES)

    @post_load
    def to_dto(self, data: dict[str, Any], **_: Any) -> SignupIn:
        return SignupIn(**data)


class LoginSchema(_InputSchema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, error_messages={"required": "Email is required"})
    password = fields.String(
        required=True,
        validate=validate.Length(min=1),
        error_messages={"required": "Password is required"},
    )

    @post_load
    def to_dto(self, data: dict[str, Any], **_: Any) -> LoginIn:
        return LoginIn(**data)


class RefreshTokenSchema(_InputSchema):
    """Input payload for token rotation."""

    refresh_token = fields.String(
        required=True,
        validate=validate.Length(min=1),
        error_messages={"required": "Refresh token is required"},
    )

    @post_load
    def to_dto(self, data: dict[str, Any], **_: Any) -> RefreshIn:
        return RefreshIn(**data)


class LogoutSchema(_InputSchema):
    """Optional refresh token to discard on logout."""

    refresh_token = fields.String(load_default=None, allow_none=True)

    @post_load
    def to_dto(self, data: dict[str, Any], **_: Any) -> LogoutIn:
        return LogoutIn(**data)


class TokenPairSchema(Schema):
    """Response payload containing both tokens."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)


class AuthResultSchema(TokenPairSchema):
    """Response payload for signup and login."""

    user = fields.Nested(UserProfileSchema, required=True)
