"""Time helpers shared by services and endpoints."""

from __future__ import annotations

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Return the current UTC instant as an ISO-8601 string."""
    return utc_now().isoformat()


def today_utc() -> date:
    """Return today's date in UTC.

    Shipping plans are keyed by calendar date, and "today" for carry-over must
    not depend on the server's local timezone.
    """
    return utc_now().date()
