"""Centralized role checks for factory staff."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException

from plastics_oms.models import User

WORKER_ROLES: frozenset[str] = frozenset({"WAREHOUSE", "PRODUCTION", "SHIPPING"})
FINANCE_ROLES: frozenset[str] = frozenset({"ADMIN", "SALES", "ACCOUNTING"})
HANDOVER_MANAGER_ROLES: frozenset[str] = frozenset({"ADMIN", "SALES", "ACCOUNTING"})

FINANCE_FIELDS: tuple[str, ...] = ("price", "payment_term", "currency")

_TURKISH_FOLD = str.maketrans({"ı": "i", "İ": "i", "ğ": "g", "ü": "u", "ş": "s", "ö": "o", "ç": "c"})


def normalize_name(value: str | None) -> str:
    """Lower-case a person's name and fold Turkish letters to ASCII."""
    return (value or "").translate(_TURKISH_FOLD).lower().translate(_TURKISH_FOLD)


def is_factory_manager(full_name: str | None) -> bool:
    return "fabrika muduru" in normalize_name(full_name)


def _role(user: User) -> str:
    return str(user.role or "").upper()


def is_worker_role(role: str) -> bool:
    return role.upper() in WORKER_ROLES


def can_view_finance(user: User) -> bool:
    return _role(user) in FINANCE_ROLES


def can_manage_orders(user: User) -> bool:
    return _role(user) in {"ADMIN", "SALES"}


def can_update_orders(user: User) -> bool:
    return _role(user) in {"ADMIN", "SALES", "ACCOUNTING"}


def can_close_orders(user: User) -> bool:
    return _role(user) in {"ADMIN", "ACCOUNTING"}


def can_delete_orders(user: User) -> bool:
    return _role(user) == "ADMIN"


def can_assign_tasks(user: User) -> bool:
    return _role(user) in {"ADMIN", "SALES"}


def can_view_stock(user: User) -> bool:
    return _role(user) in {"ADMIN", "SALES"} or is_factory_manager(user.full_name)


def can_create_stock(user: User) -> bool:
    return _role(user) in {"ADMIN", "ACCOUNTING"}


def can_edit_stock(user: User) -> bool:
    return _role(user) == "ADMIN"


def can_use_warehouse_entry(user: User) -> bool:
    return _role(user) in {"ADMIN", "WAREHOUSE"}


def can_use_bobbin_entry(user: User) -> bool:
    return _role(user) in {"ADMIN", "PRODUCTION"}


def can_manage_production_plans(user: User) -> bool:
    return _role(user) in {"ADMIN", "PRODUCTION"}


def can_view_audit_trail(user: User) -> bool:
    return _role(user) in {"ADMIN", "SALES", "ACCOUNTING"}


def can_manage_shipping_schedule(user: User) -> bool:
    return _role(user) in {"ADMIN", "SALES"} or is_factory_manager(user.full_name)


def can_view_shipping_schedule(user: User) -> bool:
    return can_manage_shipping_schedule(user) or _role(user) == "SHIPPING"


def can_complete_shipping(user: User) -> bool:
    return _role(user) in {"ADMIN", "SHIPPING"} or is_factory_manager(user.full_name)


def can_send_order_nudge(user: User) -> bool:
    return _role(user) in {"ADMIN", "SALES"} or is_factory_manager(user.full_name)


def can_view_handover(user: User) -> bool:
    return bool(_role(user))


def can_manage_all_handover(user: User) -> bool:
    return _role(user) in HANDOVER_MANAGER_ROLES


def strip_finance_fields(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if key not in FINANCE_FIELDS}


def ensure_role(user: User, allowed_roles: set[str]) -> None:
    """Ensure user role is one of allowed roles."""
    if _role(user) not in allowed_roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def ensure_permission(allowed: bool, detail: str = "Forbidden") -> None:
    if not allowed:
        raise HTTPException(status_code=403, detail=detail)
