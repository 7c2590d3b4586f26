"""
app/__init__.py — Flask application factory.

create_app(config_name) builds a configured app; nothing is initialised at
import time, so tests and Alembic can each build their own.

The factory loads config_by_name[config_name], initialises SQLAlchemy and
Marshmallow, registers the /api/v1 blueprints and the global error handlers,
and installs a JSON provider that serialises Decimal as a string.
"""

from __future__ import annotations

import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from splitwibe.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────
# Flask's default JSON encoder does not handle Decimal.
# Monetary amounts are serialised as strings to preserve precision.

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider to serialise Decimal as str.

    Example: Decimal("10.50") → "10.50" (not 10.5 or 10.500000001)
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to "development".
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from splitwibe.app.extensions import db, ma
    db.init_app(app)
    ma.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    with app.app_context():
        from splitwibe.app.models import (  # noqa: F401
            expense,
            group,
            membership,
            profile,
            settlement,
            split,
        )

    # ── Blueprints ─────────────────────────────────────────────────────────
    _register_blueprints(app)

    # ── Error handlers ─────────────────────────────────────────────────────
    _register_error_handlers(app)
    _register_cors(app)

    app.logger.debug("Application created with %s config", config_name)
    return app


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    The url_prefix is set here so individual route files only specify
    the path relative to their resource (e.g. "/" and "/<int:id>").
    """
    from splitwibe.app.routes.balances import balances_bp
    from splitwibe.app.routes.expenses import expenses_bp
    from splitwibe.app.routes.groups import groups_bp
    from splitwibe.app.routes.profile import profile_bp
    from splitwibe.app.routes.settlements import settlements_bp

    app.register_blueprint(profile_bp,     url_prefix="/api/v1/profile")
    app.register_blueprint(groups_bp,      url_prefix="/api/v1/groups")
    # expenses_bp owns /groups/<id>/expenses, so it sits at the bare /api/v1.
    app.register_blueprint(expenses_bp,    url_prefix="/api/v1")
    app.register_blueprint(balances_bp,    url_prefix="/api/v1/groups")
    app.register_blueprint(settlements_bp, url_prefix="/api/v1/groups")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors formatted as MISSING_FIELD /
                        INVALID_FIELD responses (400)
      HTTPException   → werkzeug's status (404 for unknown routes, 405, ...)
      Exception       → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server. The traceback is written to the
    app logger.
    """
    from splitwibe.app.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (middleware, service, route) into the standard error envelope.

        Routes never catch AppError; they let it propagate here.
        """
        if error.http_status >= 500:
            app.logger.error(
                "%s on %s %s: %s",
                error.code,
                request.method,
                request.path,
                error.message,
            )
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """Only the first field error is reported; see _first_validation_error()."""
        field, code, message = _first_validation_error(error.messages)

        body = {"error": {"code": code, "message": message}}
        if field is not None:
            body["error"]["field"] = field
        return jsonify(body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        """Unknown routes, wrong methods and malformed JSON bodies."""
        code = {
            404: ErrorCode.NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }.get(error.code, ErrorCode.INVALID_FIELD)
        return jsonify({
            "error": {
                "code": code,
                "message": error.description,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.

        The full traceback is logged; it never appears in the response body.
        """
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a frontend served from another
    local port can call the API with Authorization headers.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response


_CODE_MESSAGES = {
    "INVALID_AMOUNT_PRECISION": "Amount must have at most 2 decimal places.",
    "INVALID_AMOUNT": "Amount must be greater than zero.",
}


def _first_validation_error(messages) -> tuple[str | None, str, str]:
    """
    Reduces marshmallow's error structure to (field, code, message).

    A schema validator may raise with an ErrorCode constant as its message
    (e.g. INVALID_AMOUNT_PRECISION); that constant becomes the response code
    and the message comes from _CODE_MESSAGES. Marshmallow's own "Missing
    data for required field." maps to MISSING_FIELD, anything else to
    INVALID_FIELD.
    """
    from splitwibe.app.errors import ErrorCode

    field = None
    raw = "Invalid input."

    if isinstance(messages, dict) and messages:
        # e.g. {"amount": ["INVALID_AMOUNT_PRECISION"]}
        field, errors = next(iter(messages.items()))
        if field == "_schema":
            field = None
        if isinstance(errors, list):
            raw = errors[0] if errors else "Invalid value."
        else:
            raw = str(errors)
    elif isinstance(messages, list) and messages:
        raw = messages[0]

    raw = str(raw)
    if raw in _CODE_MESSAGES or raw in vars(ErrorCode).values():
        return field, raw, _CODE_MESSAGES.get(raw, "Invalid input.")
    if raw.startswith("Missing data for required field"):
        return field, ErrorCode.MISSING_FIELD, raw
    return field, ErrorCode.INVALID_FIELD, raw
