"""
Main FastAPI Application Entry Point
"""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from estatehub.api.errors import register_exception_handlers
from estatehub.core.config import Settings, get_settings
from estatehub.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Route modules of the surrounding web layer attach themselves with
    ``app.include_router``; this factory only wires logging, CORS and the
    error mapping.
    """
    settings = settings or get_settings()
    configure_logging(settings.app)

    app = FastAPI(
        title="EstateHub API",
        description="Real-estate management backend",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        debug=settings.app.debug,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "backend",
        }

    logger.info(f"EstateHub API configured for {settings.app.env}")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "estatehub.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
