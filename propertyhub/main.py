import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .api import (
    activity,
    announcements,
    auth,
    dashboard,
    maintenance,
    messages,
    notifications,
    payments,
    properties,
    receipts,
    system,
    units,
)
from .config import Base, settings
from .core.errors import register_exception_handlers
from .core.logging import configure_logging
from .core.request_context import request_context_middleware
from .core.security import SecurityHeadersMiddleware, log_security_warnings
from .services.notifications import notification_center

configure_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)

app = FastAPI(title="PropertyHub API")

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(request_context_middleware)

register_exception_handlers(app)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(properties.router, prefix="/properties", tags=["properties"])
app.include_router(units.router, prefix="/units", tags=["units"])
app.include_router(maintenance.router, prefix="/maintenance", tags=["maintenance"])
app.include_router(payments.router, prefix="/payments", tags=["payments"])
app.include_router(receipts.router, prefix="/receipts", tags=["receipts"])
app.include_router(announcements.router, prefix="/announcements", tags=["announcements"])
app.include_router(messages.router, prefix="/messages", tags=["messages"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
app.include_router(activity.router, prefix="/activity", tags=["activity"])
app.include_router(system.router, prefix="/system", tags=["system"])


@app.on_event("startup")
def startup() -> None:
    # No migration tool; tables are created on boot.
    Base.metadata.create_all(bind=config.engine)
    log_security_warnings(settings)
    logger.info("PropertyHub API started")


@app.on_event("startup")
async def configure_notification_center() -> None:
    notification_center.configure_loop(asyncio.get_running_loop())


@app.on_event("shutdown")
async def shutdown_notification_center() -> None:
    await notification_center.shutdown()
