"""
Storefront Application

Backend for the Telegram ordering mini-app: browse Saleor stores,
build a cart and hand an order draft back to Saleor.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables before settings are read elsewhere
load_dotenv()

from .core.config import settings
from .core.session import session_manager
from .routes import sessions_router
from .routes import sessions as sessions_routes

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
    logger.info(f"Saleor API: {settings.saleor_api_url} (channel {settings.saleor_channel})")

    yield

    logger.info("Storefront shutting down...")
    for session_id in list(session_manager.sessions):
        session_manager.delete_session(session_id)
    if sessions_routes.http_client is not None:
        await sessions_routes.http_client.aclose()
        sessions_routes.http_client = None


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Order goods from Saleor stores inside Telegram",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Mini-app front end is served from another origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sessions_router)


@app.get("/")
async def home():
    """Service index"""
    return {
        "message": f"{settings.app_name} API",
        "docs": "/docs",
        "endpoints": {
            "sessions": "/api/sessions",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "storefront",
        "saleor_configured": bool(settings.saleor_api_url),
        "channel": settings.saleor_channel,
        "active_sessions": len(session_manager.sessions),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
