"""
FastAPI application factory and configuration.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ..config import get_settings
from ..services.catalog import sync_catalog
from ..services.dialog import DialogOrchestrator
from ..utils.event_log import set_log_path
from ..utils.logging import configure_logging, get_logger
from .webhooks import WhatsAppWebhook

logger = get_logger("salon.app")


def create_app(orchestrator: Optional[DialogOrchestrator] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)
    set_log_path(settings.event_log_path)

    whatsapp_webhook = WhatsAppWebhook(orchestrator)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.catalog_sync_on_startup:
            resolver = whatsapp_webhook.orchestrator.resolver
            try:
                await sync_catalog(resolver.catalog, resolver.backend, settings.tenant_id)
            except Exception as e:
                logger.error(f"startup catalog sync failed: {e}")
        yield

    app = FastAPI(
        title=settings.app_name,
        description="WhatsApp booking assistant for beauty salons",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.include_router(whatsapp_webhook.router, prefix="/webhook", tags=["webhooks"])

    return app
