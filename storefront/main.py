"""
Storefront Application

E-commerce API: catalog, cart, coupons, checkout and gateway payments.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from commerce.errors import CommerceError, IntegrityError

from .core.config import settings
from .core.dependencies import close_gateway
from .routes import (
    addresses_router,
    auth_router,
    cart_router,
    coupons_router,
    orders_router,
    payment_router,
    products_router,
)

# Load environment variables
load_dotenv("config/.env")

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"{settings.app_name} starting up...")
    logger.info(f"Webhooks: {'enabled' if settings.webhooks_enabled else 'disabled'}")
    yield
    await close_gateway()
    logger.info(f"{settings.app_name} shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Storefront API: cart, coupons, orders and payments",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware (the refresh cookie needs credentials)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CommerceError)
async def commerce_error_handler(request: Request, exc: CommerceError):
    """Domain errors become {"detail", "reason"} with the error's status"""
    if isinstance(exc, IntegrityError):
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.reason.value}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "reason": exc.reason.value},
    )


# Include API routers
app.include_router(auth_router)
app.include_router(products_router)
app.include_router(cart_router)
app.include_router(coupons_router)
app.include_router(addresses_router)
app.include_router(orders_router)
app.include_router(payment_router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "storefront"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
