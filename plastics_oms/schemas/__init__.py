"""Schema exports."""

from plastics_oms.schemas.auth import AuthUserResponse, LoginRequest, TokenResponse
from plastics_oms.schemas.handover import HandoverNoteCreate, HandoverNoteUpdate
from plastics_oms.schemas.message import DirectMessageCreate
from plastics_oms.schemas.notification import AuditLogRead, NotificationMarkRead, NotificationRead
from plastics_oms.schemas.order import (
    OrderCreate,
    OrderNudge,
    OrderRead,
    OrderTaskRead,
    OrderUpdate,
    ReadyMetricsRead,
    TaskAssign,
    TaskProgress,
)
from plastics_oms.schemas.production import (
    BobbinCreate,
    BobbinRead,
    BobbinUpdate,
    CuttingEntryCreate,
    CuttingEntryRead,
    CuttingPlanCreate,
    CuttingPlanRead,
    CuttingPlanUpdate,
)
from plastics_oms.schemas.shipping import ShippingScheduleCreate, ShippingScheduleRead, ShippingScheduleUpdate
from plastics_oms.schemas.stock import (
    OrderStockEntryCreate,
    OrderStockEntryRead,
    StockCreate,
    StockMovementRead,
    StockRead,
    StockUpdate,
)
from plastics_oms.schemas.user import UserCreate, UserRead

__all__ = [
    "AuthUserResponse",
    "LoginRequest",
    "TokenResponse",
    "HandoverNoteCreate",
    "HandoverNoteUpdate",
    "DirectMessageCreate",
    "AuditLogRead",
    "NotificationMarkRead",
    "NotificationRead",
    "OrderCreate",
    "OrderNudge",
    "OrderRead",
    "OrderTaskRead",
    "OrderUpdate",
    "ReadyMetricsRead",
    "TaskAssign",
    "TaskProgress",
    "BobbinCreate",
    "BobbinRead",
    "BobbinUpdate",
    "CuttingEntryCreate",
    "CuttingEntryRead",
    "CuttingPlanCreate",
    "CuttingPlanRead",
    "CuttingPlanUpdate",
    "ShippingScheduleCreate",
    "ShippingScheduleRead",
    "ShippingScheduleUpdate",
    "OrderStockEntryCreate",
    "OrderStockEntryRead",
    "StockCreate",
    "StockMovementRead",
    "StockRead",
    "StockUpdate",
    "UserCreate",
    "UserRead",
]
