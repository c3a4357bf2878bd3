"""Application entry point for the inbox feed service."""
from __future__ import annotations

import logging
import os
from typing import Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .routers import inbox_router
from .services import feed_registry

logger = logging.getLogger(__name__)

settings = get_settings()
APP_NAME = settings.app_name
API_VERSION = settings.api_version

app = FastAPI(title=APP_NAME, version=API_VERSION)

cors_origins = os.getenv("CORS_ORIGINS")
if cors_origins:
    origins: Iterable[str] = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
else:
    origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(inbox_router)


@app.on_event("startup")
async def _startup() -> None:
    logger.info(
        "Inbox feed ready (remote=%s, page_size=%d, refresh=%dms)",
        settings.notifications_base_url,
        settings.feed_page_size,
        settings.feed_refresh_interval_ms,
    )


@app.on_event("shutdown")
async def _shutdown() -> None:
    """Tear down every mounted feed's refresh timer."""

    await feed_registry.unmount_all()


@app.get("/api", tags=["system"])
def api_info() -> dict[str, str]:
    return {"service": APP_NAME, "version": API_VERSION}


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, object]:
    return {"status": "ok", "mounted_feeds": len(feed_registry)}
