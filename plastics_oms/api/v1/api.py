"""API v1 router composition."""

from fastapi import APIRouter

from plastics_oms.api.v1.endpoints import (
    audit_logs,
    auth,
    cutting_entries,
    cutting_plans,
    handover,
    messages,
    notifications,
    order_stock_entries,
    orders,
    production_bobbins,
    shipping,
    stock,
    tasks,
    users,
)

api_router: APIRouter = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(stock.router, prefix="/stock", tags=["stock"])
api_router.include_router(order_stock_entries.router, prefix="/order-stock-entries", tags=["warehouse"])
api_router.include_router(cutting_plans.router, prefix="/cutting-plans", tags=["production"])
api_router.include_router(cutting_entries.router, prefix="/cutting-entries", tags=["production"])
api_router.include_router(production_bobbins.router, prefix="/production-bobbins", tags=["production"])
api_router.include_router(shipping.router, prefix="/shipping-schedules", tags=["shipping"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(handover.router, prefix="/handover-notes", tags=["handover"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit"])
