"""
Cart Service Application

In-memory stand-in for the remote cart service the storefront talks to.
It is the authoritative source for cart contents, pricing, discount
eligibility, gift cards and inventory.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from .routes import cart_router

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Cart Service starting up...")
    logger.info(f"Checkout base URL: {os.getenv('CHECKOUT_BASE_URL', 'http://localhost:8001')}")
    yield
    logger.info("Cart Service shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Cart Service",
    description="Authoritative cart, pricing and inventory service",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cart_router)


@app.get("/")
async def home():
    """Service index"""
    return {
        "message": "Cart Service API",
        "docs": "/docs",
        "endpoints": {
            "carts": "/api/carts",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "cart-service"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cart_service.main:app",
        host="0.0.0.0",
        port=8001,
        reload=True,
    )
