# app/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.db import create_all_tables
from app.storage.selector import build_backend_selector
from app.utils.logger import setup_app_logging, get_logger
# Local application imports - Routes
from app.users.router import router as user_routes
from app.actas.router import router as acta_routes
from app.signatures.router import router as signature_routes

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create missing tables on startup when configured to do so
    """
    if settings.auto_create_tables:
        await create_all_tables()
    yield


# Create the FastAPI app
acta_app = FastAPI(
    title=f"Actas Management Service - {settings.environment}",
    description="Meeting minutes (actas) and signature workflow API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure logging
if not settings.is_production:
    setup_app_logging(
        acta_app,
        log_level=settings.log_level,
        use_json=False,
        log_file=settings.log_file or "app.log",
        app_name="Actas Management Service",
        environment=settings.environment,
    )
else:
    setup_app_logging(
        acta_app,
        log_level=settings.log_level,
        use_json=True,
        log_file=settings.log_file or "/var/log/actas_app.log",
        app_name="Actas Management Service",
        environment="production",
    )
logger = get_logger(__name__)

# Storage backend selection is shared by every request of this process
acta_app.state.backend_selector = build_backend_selector(settings)
logger.info("Acta storage configured", storage_mode=settings.storage_mode)

# Add CORS middleware
acta_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_cors_urls.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
acta_app.include_router(user_routes)
acta_app.include_router(acta_routes)
acta_app.include_router(signature_routes)


# Root API to check if the server is up
@acta_app.get("/", tags=["Base"])
async def health_check():
    """
    Root API to check if the server is up
    """
    logger.info("Calling root API for testing")
    return {"status": "ok", "storage_fallback": acta_app.state.backend_selector.fallback_engaged}
