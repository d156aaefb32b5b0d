"""FastAPI entrypoint for the plastics order-management backend."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from plastics_oms.api.v1.api import api_router
from plastics_oms.core.config import settings
from plastics_oms.db.base import Base
from plastics_oms.db.migrations import ensure_sqlite_schema
from plastics_oms.db.session import SessionLocal, engine
from plastics_oms.services.account_service import ensure_default_admin
from plastics_oms.services.virtual_store import EventStoreError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, debug=settings.debug)
app.include_router(api_router, prefix="/api/v1")


@app.exception_handler(EventStoreError)
def event_store_error_handler(request: Request, exc: EventStoreError) -> JSONResponse:
    logger.error("[VIRTUAL] %s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Event store unavailable"})


@app.on_event("startup")
def startup() -> None:
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema(engine)
    with SessionLocal() as session:
        try:
            admin_present = ensure_default_admin(session)
            logger.info("[BOOTSTRAP] default admin present: %s", "yes" if admin_present else "no")
        except Exception:
            logger.exception("[BOOTSTRAP] Admin bootstrap failed; continuing startup.")
