"""
InternHub - Main Application

FastAPI backend with:
- MongoDB for every entity
- JWT authentication for students and organizations
- Best-effort email and push notifications

Run: uvicorn internhub.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from internhub import __version__
from internhub.api.routes import api_router
from internhub.core.config import Settings, get_settings
from internhub.core.errors import register_exception_handlers
from internhub.core.logging_config import configure_logging
from internhub.db.mongodb import check_mongo_connection, create_mongo_client, init_mongo_indexes
from internhub.services.notifier import build_notifier
from internhub.utils.dates import as_utc, utcnow

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the MongoDB client and notifier on startup, close on shutdown."""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)

    client = create_mongo_client(settings)
    app.state.mongo_client = client
    app.state.db = client[settings.mongodb_db]
    try:
        init_mongo_indexes(app.state.db)
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)
    app.state.notifier = build_notifier(settings)
    logger.info("InternHub API started (database %s)", settings.mongodb_db)

    yield

    client.close()
    logger.info("InternHub API stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application. Tests pass their own settings and override get_db/get_notifier."""
    settings = settings or get_settings()

    app = FastAPI(
        title="InternHub API",
        description="""
    Backend for an internship marketplace.

    ## Features
    - **Authentication**: JWT-based auth for students and organizations
    - **Opportunities**: Search, filter, publish and apply
    - **Applications**: Status workflow with applicant notifications
    - **Community**: Reviews, career resources, forum, email alerts
    """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    @app.get("/", tags=["Health"])
    def root():
        """Service info and endpoint map."""
        return {
            "success": True,
            "message": "InternHub API",
            "version": __version__,
            "endpoints": {
                "auth": "/api/auth",
                "students": "/api/students",
                "organizations": "/api/organizations",
                "opportunities": "/api/opportunities",
                "reviews": "/api/reviews",
                "resources": "/api/resources",
                "forum": "/api/forum",
                "alerts": "/api/alerts",
                "blog": "/api/blog",
                "contact": "/api/contact",
                "health": "/api/health",
            },
        }

    @app.get("/api/health", tags=["Health"])
    def health_check(request: Request):
        """Liveness plus a MongoDB ping."""
        client = getattr(request.app.state, "mongo_client", None)
        connected = client is not None and check_mongo_connection(client)
        return {
            "success": True,
            "message": "Server is running",
            "timestamp": as_utc(utcnow()),
            "database": "connected" if connected else "disconnected",
        }

    return app


app = create_app()
