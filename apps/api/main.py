# FastAPI entrypoint with all routes and middleware

import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from loguru import logger
import uvicorn

from apps.config import get_settings
from apps.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from auth.gate_routes import router as gate_router
from keys.database import DatabaseConfig, DatabaseManager
from keys.key_routes import router as keys_router
from monitoring.observability import get_metrics
from research.research_routes import close_analyzer, router as research_router

settings = get_settings()

# ==================== LOGGING ====================

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger.remove()
logger.add(sys.stderr, level=settings.log_level)

# Initialize FastAPI app
app = FastAPI(
    title="Nani API Key Dashboard",
    description="API key management, playground access gate and GitHub research assistant",
    version="1.0.0"
)

# ==================== MIDDLEWARE ====================

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=86400,
)

# ==================== ROUTER REGISTRATION ====================

app.include_router(keys_router)         # /api/keys
app.include_router(gate_router)         # /api/playground, /api/protected, /protected
app.include_router(research_router)     # /api/analyze-repo

# ==================== LIFECYCLE ====================

@app.on_event("startup")
async def startup_event():
    """Initialize on startup."""
    logger.info(f"Starting with settings: {settings.as_dict()}")
    DatabaseManager.initialize(DatabaseConfig(settings.database_url, echo=settings.db_echo))


@app.on_event("shutdown")
async def shutdown_event():
    close_analyzer()
    DatabaseManager.dispose()

# ==================== SYSTEM ENDPOINTS ====================

@app.get("/")
async def root():
    return {
        "message": "Nani API Key Dashboard",
        "status": "running",
        "docs_url": "/docs",
        "api_base": "/api"
    }


@app.get("/api/health")
async def health_check():
    """Liveness plus database health and operation metrics."""
    database_ok = DatabaseManager.health_check()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": {
            "healthy": database_ok,
            "fallback": DatabaseManager.is_using_fallback(),
        },
        "metrics": get_metrics(),
    }


def main():
    uvicorn.run(
        "apps.api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
