"""Shared SQLAlchemy base declarative class and model imports."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""


# Import model modules so metadata is populated before create_all.
from plastics_oms.models import audit_log as _audit_log  # noqa: E402,F401
from plastics_oms.models import handover as _handover  # noqa: E402,F401
from plastics_oms.models import message as _message  # noqa: E402,F401
from plastics_oms.models import notification as _notification  # noqa: E402,F401
from plastics_oms.models import order as _order  # noqa: E402,F401
from plastics_oms.models import production as _production  # noqa: E402,F401
from plastics_oms.models import shipping as _shipping  # noqa: E402,F401
from plastics_oms.models import stock as _stock  # noqa: E402,F401
from plastics_oms.models import user as _user  # noqa: E402,F401
