"""FastAPI application"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from atelier import __version__
from atelier.api.woocommerce_client import WooCommerceClient
from atelier.config import Settings, settings as default_settings
from atelier.database import Store
from atelier.dependencies import Services
from atelier.exceptions import AtelierError
from atelier.routers import assignments, orders, production, sync, tricoteuses
from atelier.services.scheduler import DailySyncScheduler

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level.upper(),
        format='[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


async def atelier_error_handler(request: Request, exc: AtelierError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.code} {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path}: {exc.code} {exc.detail}")
    body = {"success": False, "error": exc.code, "message": exc.detail}
    body.update(exc.extra)
    return JSONResponse(status_code=exc.status_code, content=body)


def create_app(
    store: Optional[Store] = None,
    source=None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the application

    Args:
        store: store handle (default: from settings.database_url)
        source: order source (default: WooCommerceClient from settings)
        settings: Settings (default: module-level settings)
    """
    settings = settings or default_settings
    owns_store = store is None
    store = store or Store(settings.database_url)
    source = source or WooCommerceClient.from_settings(settings)
    services = Services.build(store, source, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting")
        store.connect()
        if not settings.woocommerce_configured:
            logger.warning("WooCommerce credentials missing, sync calls will be rejected upstream")
        if settings.daily_sync_enabled:
            services.scheduler = DailySyncScheduler(
                services.order_sync,
                hour=settings.daily_sync_hour,
                minute=settings.daily_sync_minute,
            )
            services.scheduler.start()

        yield

        if services.scheduler is not None:
            services.scheduler.shutdown()
        if owns_store:
            store.disconnect()
        logger.info("Application stopped")

    app = FastAPI(
        title="Atelier production tracker",
        description="WooCommerce order sync, article assignments and production status",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AtelierError, atelier_error_handler)

    for module in (orders, assignments, production, tricoteuses, sync):
        app.include_router(module.router, prefix=API_PREFIX)
    app.include_router(sync.import_router, prefix=API_PREFIX)

    @app.get("/")
    def root():
        return {
            "message": "Atelier production tracker",
            "version": __version__,
            "docs": "/docs",
        }

    @app.get("/health")
    def health_check():
        return {
            "status": "healthy" if store.is_ready() else "starting",
            "database": "connected" if store.is_ready() else "disconnected",
        }

    return app


configure_logging(default_settings.log_level)
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "atelier.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
