"""Classification of driver errors raised for absent schema objects."""

from __future__ import annotations

from sqlalchemy.exc import DBAPIError

UNDEFINED_TABLE_SQLSTATE = "42P01"
UNDEFINED_COLUMN_SQLSTATE = "42703"


def _error_parts(error: BaseException) -> tuple[str, str]:
    """Return lower-cased message and SQLSTATE code (if any) for an error."""
    original = error.orig if isinstance(error, DBAPIError) else error
    code = str(getattr(original, "pgcode", None) or getattr(original, "sqlstate", None) or "")
    return str(original).lower(), code


def is_missing_table_error(error: BaseException, table: str) -> bool:
    """Return whether ``error`` reports that ``table`` does not exist."""
    message, code = _error_parts(error)
    lower_table = table.lower()
    return (
        f"no such table: {lower_table}" in message
        or f'relation "{lower_table}" does not exist' in message
        or f'relation "public.{lower_table}" does not exist' in message
        or (code == UNDEFINED_TABLE_SQLSTATE and lower_table in message)
    )


def is_missing_column_error(error: BaseException, column: str) -> bool:
    """Return whether ``error`` reports that ``column`` does not exist."""
    message, code = _error_parts(error)
    lower_column = column.lower()
    return (
        ("no such column" in message and (f": {lower_column}" in message or f".{lower_column}" in message))
        or f'column "{lower_column}" does not exist' in message
        or (code == UNDEFINED_COLUMN_SQLSTATE and lower_column in message)
    )
