"""
Emotiva FastAPI Application

Main entry point for the Emotiva API: daily emotional check-ins for
children, guardian alerts, weekly reports and report sharing.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Common library imports
from common.database import MongoDB, set_main_database
from common.utils import success_response

# App-specific imports
from emotiva.config import settings
from emotiva.database import ensure_indexes

# Import routers
from emotiva.routers import (
    dashboard_router,
    profile_router,
    children_router,
    checkin_router,
    sharing_router,
    psychologists_router,
    schools_router,
    notifications_router,
    subscription_router,
)

# Import service initialization
from emotiva.dependencies import init_all_services


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


# =============================================================================
# Database Instance
# =============================================================================
main_db = MongoDB()


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown tasks like database connections
    and service initialization.
    """
    # Startup
    print("Starting Emotiva API...")
    settings.validate_required()

    await main_db.connect(
        uri=settings.MONGODB_URI,
        database_name=settings.MONGODB_DATABASE,
        document_models=[],
    )
    set_main_database(main_db)
    print(f"Connected to database: {settings.MONGODB_DATABASE}")

    await ensure_indexes(main_db.db)

    init_all_services(db=main_db.db, app_settings=settings)
    print("All services initialized successfully!")

    print("Emotiva API started successfully!")

    yield

    # Shutdown
    print("Shutting down Emotiva API...")
    await main_db.disconnect()
    print("Emotiva API shut down complete.")


# =============================================================================
# FastAPI Application
# =============================================================================
app = FastAPI(
    title="Emotiva API",
    description="Daily emotional check-ins for children, with alerts and weekly reports",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.is_development() else None,
    redoc_url="/redoc" if settings.is_development() else None,
)

# =============================================================================
# CORS Middleware
# =============================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================================
# Include Routers (all under /api/v1 prefix)
# =============================================================================
API_PREFIX = "/api/v1"

app.include_router(dashboard_router, prefix=API_PREFIX, tags=["Dashboard"])
app.include_router(profile_router, prefix=API_PREFIX)
app.include_router(children_router, prefix=API_PREFIX)
app.include_router(checkin_router, prefix=API_PREFIX)
app.include_router(sharing_router, prefix=API_PREFIX)
app.include_router(psychologists_router, prefix=API_PREFIX)
app.include_router(schools_router, prefix=API_PREFIX)
app.include_router(notifications_router, prefix=API_PREFIX)
app.include_router(subscription_router, prefix=API_PREFIX)


# =============================================================================
# Health Check Endpoint
# =============================================================================
@app.get("/health", tags=["Health"])
async def health():
    """
    Health check endpoint.

    Returns the status of the API and database connection.
    """
    return success_response({
        "status": "ok",
        "version": "1.0.0",
        "database": main_db.is_connected,
    })


# =============================================================================
# Run with Uvicorn
# =============================================================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development(),
    )
