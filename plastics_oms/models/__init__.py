"""Application models package."""

from plastics_oms.models.audit_log import AuditLog
from plastics_oms.models.handover import HandoverNote
from plastics_oms.models.message import DirectMessage
from plastics_oms.models.notification import Notification
from plastics_oms.models.order import Order, OrderTask
from plastics_oms.models.production import CuttingEntry, CuttingPlan, ProductionBobbin
from plastics_oms.models.shipping import ShippingSchedule
from plastics_oms.models.stock import OrderStockEntry, StockItem, StockMovement
from plastics_oms.models.user import User

__all__ = [
    "User", "Order", "OrderTask", "StockItem", "StockMovement", "OrderStockEntry", "CuttingPlan", "CuttingEntry",
    "ProductionBobbin", "ShippingSchedule", "Notification", "AuditLog", "HandoverNote", "DirectMessage",
]
