"""
WhatsApp Gateway API

FastAPI app exposing session, message and webhook endpoints under /api/v1.
Provider clients are created once per app and closed on shutdown.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from whatsapp_gateway.api.errors import register_exception_handlers
from whatsapp_gateway.api.middleware import RequestContextMiddleware
from whatsapp_gateway.api.routers import auth, messages, sessions, webhooks
from whatsapp_gateway.core.logging import setup_logging
from whatsapp_gateway.core.settings import Settings, get_settings
from whatsapp_gateway.providers.factory import ProviderFactory

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app(settings: Settings | None = None, providers: ProviderFactory | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (defaults to environment settings)
        providers: Provider factory (tests pass one wrapping a stub)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Multi-tenant WhatsApp session and messaging gateway",
        version=settings.APP_VERSION,
    )
    app.state.settings = settings
    app.state.providers = providers or ProviderFactory(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(sessions.router, prefix=API_PREFIX)
    app.include_router(messages.router, prefix=API_PREFIX)
    app.include_router(webhooks.router, prefix=API_PREFIX)

    @app.on_event("startup")
    async def startup():
        logger.info(
            "WhatsApp gateway started",
            extra={"environment": settings.ENVIRONMENT, "stub_provider": settings.use_stub_provider},
        )

    @app.on_event("shutdown")
    async def shutdown():
        await app.state.providers.close()

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "service": "whatsapp-gateway"}

    return app


setup_logging()
app = create_app()
