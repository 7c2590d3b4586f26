"""
Model package. Importing it registers every table on db.metadata, so string
relationship targets ("Profile", "ExpenseSplit", ...) always resolve.
"""

from splitwibe.app.models import (  # noqa: F401
    expense,
    group,
    membership,
    profile,
    settlement,
    split,
)
