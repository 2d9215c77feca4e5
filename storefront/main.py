"""
Storefront Service
Catalog sync, order capture, and payment/shipping collaborator glue
"""

import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from storefront.api import admin, catalog, checkout, collections, faster_checkout, orders, payment, products, shipment, webhooks
from storefront.core_settings import get_settings
from storefront.domain.errors import StorefrontError
from storefront.infrastructure.db import engine, init_models

settings = get_settings()

# Service configuration
SERVICE_NAME = "storefront-service"
SERVICE_VERSION = settings.SERVICE_VERSION
SERVICE_DESCRIPTION = "Storefront backend: catalog, checkout, payment and shipment coordination"

# Setup structured logging
setup_logging(service_name=SERVICE_NAME, level=settings.LOG_LEVEL)

logger = get_logger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")
    try:
        init_models()
        logger.info("Database models initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database models: {e}")
        raise
    logger.info(f"{SERVICE_NAME} started successfully")

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")

app = FastAPI(
    title=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url=None,
)

# Security headers middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        return response

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if settings.is_production else ["*"],
    allow_credentials=settings.is_production,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Error responses

def _error_body(message: str, exc: Exception) -> dict:
    body = {"success": False, "error": message}
    # Diagnostic traces never leave a production deployment
    if not settings.is_production:
        body["trace"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return body

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, exc))

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err["loc"] if part != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    body = {"success": False, "error": "Invalid request", "errors": errors}
    return JSONResponse(status_code=400, content=body)

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content=_error_body("Internal server error", exc))

# Initialize health checks
def _missing_collaborator_config() -> list[str]:
    required = {
        "RAZORPAY_KEY_ID": settings.RAZORPAY_KEY_ID,
        "RAZORPAY_KEY_SECRET": settings.RAZORPAY_KEY_SECRET,
        "SHIPROCKET_API_KEY": settings.SHIPROCKET_API_KEY,
        "SHIPROCKET_API_SECRET": settings.SHIPROCKET_API_SECRET,
    }
    return [name for name, value in required.items() if not value]

health_service = ServiceHealth(SERVICE_NAME, SERVICE_VERSION, engine=engine, missing_config=_missing_collaborator_config)
app.include_router(health_service.create_health_router())

# Include business logic routes
for module in (catalog, webhooks, checkout, orders, faster_checkout, payment, shipment, products, collections, admin):
    app.include_router(module.router)

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/docs",
    }

@app.get("/info")
async def info():
    """Service information endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": SERVICE_DESCRIPTION,
        "environment": settings.ENVIRONMENT,
        "endpoints": {
            "health": "/health",
            "ready": "/health/ready",
            "live": "/health/live",
            "metrics": "/metrics",
            "docs": "/docs",
        },
    }
