"""
extensions.py — Flask extension singletons.

Create the extension object here (no app attached), call init_app(app) in the
factory in app/__init__.py, and import `db` or `ma` from here wherever needed.

    from splitwibe.app.extensions import db, ma
"""

from flask_sqlalchemy import SQLAlchemy
from flask_marshmallow import Marshmallow

db = SQLAlchemy()

# Validation schemas in app/schemas/ inherit from marshmallow.Schema directly,
# NOT from ma.Schema, so unit tests can load them without an app context.
ma = Marshmallow()
