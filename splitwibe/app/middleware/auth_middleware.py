"""
middleware/auth_middleware.py — JWT authentication decorator.

Access tokens are issued by the external identity provider; this service only
verifies them with the shared secret. The @require_auth decorator:
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Verifies the signature, expiry and (when configured) the audience
  3. Attaches user_id (int, from the `sub` claim) to flask.g
  4. Raises the appropriate 401 error if any step fails

Responsibility boundary:
  - Middleware = authentication (401). It does NOT check group membership.
  - Service = authorization (403). Services receive user_id as a plain int,
    with no knowledge of JWT or HTTP headers.

Error codes:
  TOKEN_MISSING  (401) — no Authorization header
  TOKEN_INVALID  (401) — malformed header, bad signature, audience or payload
  TOKEN_EXPIRED  (401) — valid token but exp claim is in the past
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import current_app, g, request

from splitwibe.app.errors import AppError, ErrorCode


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces JWT authentication.

    Attaches the authenticated user's ID to flask.g.user_id.
    Raises AppError for all auth failures; the global error handler converts
    these to the correct JSON response. Routes never catch AppError.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _decode_token(raw_token: str) -> dict:
    config = current_app.config
    audience = config.get("JWT_AUDIENCE") or None

    return jwt.decode(
        raw_token,
        config["JWT_SECRET_KEY"],
        algorithms=[config.get("JWT_ALGORITHM", "HS256")],
        audience=audience,
        options={"verify_aud": audience is not None},
    )


def _authenticate_request() -> None:
    """
    Performs the full JWT authentication sequence and sets flask.g.user_id.

    Separated from the decorator wrapper so tests can call it directly inside
    a request context.
    """
    auth_header = request.headers.get("Authorization", "")

    # ── Step 1: Require Authorization header ──────────────────────────────
    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    # ── Step 2: Parse "Bearer <token>" format ─────────────────────────────
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    # ── Step 3: Decode and verify the JWT ─────────────────────────────────
    try:
        payload = _decode_token(parts[1])
    except jwt.ExpiredSignatureError:
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The access token has expired. Sign in again to obtain a new one.",
            401,
        )
    except jwt.InvalidTokenError:
        # Bad signature, wrong audience, malformed token.
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
            401,
        )

    # ── Step 4: Extract and validate the sub (user_id) claim ──────────────
    sub = payload.get("sub")
    if sub is None:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is missing the required 'sub' claim.",
            401,
        )

    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The 'sub' claim in the access token is not a valid user ID.",
            401,
        )

    if user_id < 1:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The 'sub' claim in the access token is not a valid user ID.",
            401,
        )

    g.user_id = user_id
