"""Central time utilities for the application.

Timestamps are stored in naive DateTime columns (TIMESTAMP WITHOUT TIME
ZONE) holding UTC, so the helpers here strip tzinfo after computing the
current UTC time.
"""
from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as a naive datetime object.

    Replaces datetime.utcnow() without the DeprecationWarning while keeping
    values comparable with the naive DateTime columns.

    Returns:
        datetime: Current UTC time as a naive datetime object
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    """Return the current UTC calendar date."""
    return utc_now().date()
