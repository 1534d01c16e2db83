import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import text

from winepicker.api.cellar import router as cellar_router
from winepicker.api.prices import router as prices_router
from winepicker.api.scan import router as scan_router
from winepicker.api.wines import router as wines_router
from winepicker.core.config import settings
from winepicker.core.logger import setup_logging

setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="WinePicker API",
    description="Burgundy price lookup and personal cellar tracker",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)


app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(wines_router)
app.include_router(prices_router)
app.include_router(cellar_router)
app.include_router(scan_router)


@app.api_route("/health", methods=["GET", "HEAD"])
def health_check():
    try:
        from winepicker.db.session import engine

        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))

        return {
            "status": "healthy",
            "service": "winepicker-api",
            "database": "connected",
        }
    except Exception as e:
        logger.warning("health.database_unavailable", error=str(e))
        return {
            "status": "degraded",
            "service": "winepicker-api",
            "database": "disconnected",
            "error": str(e),
        }
