"""
Storefront Application

Renders the shopping cart and forwards every cart edit to the remote cart
service, showing the expected result while the service confirms it.
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .routes import cart_router
from .core.config import settings
from .core.session import SessionManager, SessionMiddleware
from .services.cart_client import CartClient

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Storefront starting up...")
    logger.info(f"Cart service URL: {app.state.cart_client.base_url}")

    yield

    logger.info("Storefront shutting down...")
    await app.state.cart_client.close()


def create_app(
    cart_client: Optional[CartClient] = None,
    sessions: Optional[SessionManager] = None,
) -> FastAPI:
    """Build the storefront app; collaborators can be injected for tests"""
    app = FastAPI(
        title=settings.app_name,
        description="Storefront with optimistic cart updates",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.cart_client = cart_client or CartClient(
        base_url=settings.cart_service_base_url,
        timeout=settings.cart_service_timeout,
    )
    app.state.sessions = sessions or SessionManager(
        max_age_hours=settings.session_max_age_hours,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        SessionMiddleware,
        sessions=app.state.sessions,
        cookie_name=settings.session_cookie_name,
    )

    # Static files
    static_dir = os.path.join(os.path.dirname(__file__), "static")
    if os.path.exists(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    app.include_router(cart_router)

    @app.get("/")
    async def home():
        """Service index"""
        return {
            "message": "Storefront API",
            "docs": "/docs",
            "endpoints": {
                "cart_page": "/cart",
                "cart": "/api/cart",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "storefront",
            "cart_service_configured": bool(settings.cart_service_base_url),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
