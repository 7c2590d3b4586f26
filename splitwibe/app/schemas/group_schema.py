"""
schemas/group_schema.py — Marshmallow schemas for group and membership endpoints.

Validation responsibility:
  - This file: field types, string lengths, non-empty checks (including trim).
  - services/group_service.py:
      - invite code normalisation and length (INVALID_INVITE_CODE)
      - GROUP_NOT_FOUND, ALREADY_MEMBER, PROFILE_NOT_FOUND (DB lookups)

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate


# validate.Length(min=1) alone allows whitespace-only strings like "   ".
# This validator strips first, mirroring CHECK(LENGTH(TRIM(name)) > 0).

def _validate_non_empty_after_trim(value: str) -> None:
    """Raises ValidationError if the string is blank or contains only whitespace."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateGroupSchema(Schema):
    """
    POST /groups

    name        : required, non-empty after trim, max 100 chars
    description : optional, max 500 chars
    """

    name = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=100,
                error="Group name must be between 1 and 100 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    description = fields.Str(
        required=False,
        allow_none=True,
        load_default=None,
        validate=validate.Length(
            max=500,
            error="Description must be at most 500 characters.",
        ),
    )


class JoinGroupSchema(Schema):
    """
    POST /groups/join

    Only presence and type are checked here. Trimming, upper-casing and the
    8-character rule are applied by group_service.normalize_invite_code().
    """

    invite_code = fields.Str(
        required=True,
        validate=validate.Length(max=64, error="Invite code is too long."),
    )
