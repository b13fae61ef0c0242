"""FastAPI application factory and configuration."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import request_logging_middleware
from api.exceptions import register_exception_handlers
from api.routes import coupons, health
from coupon_allocator import config
from coupon_allocator.version import __version__


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title="Coupon Distributor API",
        version=__version__,
        description="Single-use coupon distribution with per-client claim windows"
    )

    # Credentials are needed for the claim cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(request_logging_middleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(coupons.router)

    return app


app = create_app()
