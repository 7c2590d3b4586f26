"""
schemas/expense_schema.py — Marshmallow schema for expense creation.

Validation responsibility:
  - This file:
      - Field types, lengths, decimal precision
      - Non-empty-after-trim enforcement for description
  - services/ledger.py (record_expense):
      - INVALID_AMOUNT (amount <= 0)
      - EMPTY_MEMBERSHIP, PAYER_NOT_MEMBER (need the group's membership)
  - services/expense_service.py:
      - FORBIDDEN (caller must be a member)

There is no splits field: every expense is split equally between the group's
current members by the server.

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate

from splitwibe.app.errors import ErrorCode


def _validate_monetary_amount(value: Decimal) -> None:
    """
    Rejects (never rounds) amounts with more than 2 decimal places. The
    error handler maps the INVALID_AMOUNT_PRECISION message to its code.

    Sign is checked by ledger._validate_amount() (INVALID_AMOUNT, 422).
    """
    # Decimal("10.123").as_tuple().exponent == -3  → 3 dp → REJECT
    # Decimal("10.12").as_tuple().exponent  == -2  → 2 dp → accept
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


def _validate_non_empty_after_trim(value: str) -> None:
    """Raises ValidationError if the string is blank or contains only whitespace."""
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateExpenseSchema(Schema):
    """
    POST /groups/:id/expenses

    description     : required, non-empty after trim, max 255 chars
    amount          : required Decimal, max 2 dp (must be > 0)
    date            : optional ISO date; defaults to today
    paid_by_user_id : optional; defaults to the caller
    """

    description = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=1,
                max=255,
                error="Description must be between 1 and 255 characters.",
            ),
            _validate_non_empty_after_trim,
        ],
    )

    amount = fields.Decimal(
        required=True,
        validate=_validate_monetary_amount,
    )

    date = fields.Date(
        required=False,
        load_default=None,
    )

    paid_by_user_id = fields.Int(
        required=False,
        strict=True,   # reject floats like 1.0
        load_default=None,
        validate=validate.Range(min=1, error="paid_by_user_id must be a positive integer."),
    )
