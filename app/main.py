from fastapi import FastAPI
from loguru import logger

from app.config import settings
from app.core.logging import setup_logging
from app.core.http_client import get_http_client, close_http_client
from app.api import api_router
from app.api.proxy import get_proxy_service

# Setup logging
setup_logging()

# Create FastAPI app
# Every path belongs to the proxied site or its bypass, so no docs routes
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Run on application startup"""
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    mount = get_proxy_service().config
    logger.info(
        f"Mount: {mount.mount_path} → https://{mount.origin_host} "
        f"(legacy: {', '.join(mount.legacy_hosts) or 'none'}) | "
        f"Canonical base: {mount.canonical_base}"
    )
    if not settings.REWRITE_SITEMAP:
        logger.warning("Sitemap rewrite disabled: /sitemap.xml is served as-is")

    get_http_client()
    logger.info("Origin HTTP client ready")

    logger.info("Application startup complete")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown"""
    logger.info("Shutting down application")

    await close_http_client()
    logger.info("Origin HTTP client closed")

    logger.info("Application shutdown complete")


# Include proxy router (catch-all, must stay last)
app.include_router(api_router)

logger.info(f"{settings.PROJECT_NAME} initialized")
