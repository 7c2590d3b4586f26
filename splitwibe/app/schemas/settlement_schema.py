"""
schemas/settlement_schema.py — Marshmallow schema for settlement endpoints.

Validation responsibility:
  - This file: field types, decimal precision.
  - services/settlement_service.py:
      - INVALID_AMOUNT       — amount <= 0 (services/ledger.py)
      - SELF_SETTLEMENT      — needs the caller's user_id from flask.g
      - RECIPIENT_NOT_MEMBER — needs a DB membership lookup
      - NOTHING_TO_SETTLE    — needs the current pairwise balance
      - OVERPAYMENT warning  — needs the current pairwise balance

IMPORTANT: Inherits from marshmallow.Schema directly — never ma.Schema.
"""

from __future__ import annotations

from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate

from splitwibe.app.errors import ErrorCode


# Same rule as expense_schema.py; kept local so each schema file stands alone.

def _validate_monetary_amount(value: Decimal) -> None:
    """At most 2 decimal places (rejected, never rounded). Sign is checked by the ledger."""
    if value.as_tuple().exponent < -2:
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


class CreateSettlementSchema(Schema):
    """
    POST /groups/:id/settlements

    The payer is always the authenticated caller (flask.g.user_id), never a
    body field.

    paid_to_user_id : required, positive integer
    amount          : optional Decimal, max 2 dp (must be > 0). Omit it (or send
                      null) to settle the caller's full debt to the recipient.
    """

    paid_to_user_id = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(
            min=1,
            error="paid_to_user_id must be a positive integer.",
        ),
    )

    amount = fields.Decimal(
        required=False,
        allow_none=True,
        load_default=None,
        validate=_validate_monetary_amount,
    )
