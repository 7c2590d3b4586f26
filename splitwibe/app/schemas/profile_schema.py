"""
schemas/profile_schema.py — Marshmallow schema for the profile endpoint.

Validation responsibility:
  - This file: field types, lengths, email format.
  - services/profile_service.py: DUPLICATE_EMAIL and "email required on
    first save" (both need a DB lookup, so they live in the service).

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class UpsertProfileSchema(Schema):
    """
    PUT /profile

    Both fields are optional so the settings page can send display_name
    alone. The first save must include email.

    Field rules:
      email        : valid email, max 255 chars
      display_name : max 100 chars; null or blank clears it
    """

    email = fields.Email(
        required=False,
        validate=validate.Length(max=255),
    )

    display_name = fields.Str(
        required=False,
        allow_none=True,
        validate=validate.Length(
            max=100,
            error="Display name must be at most 100 characters.",
        ),
    )
