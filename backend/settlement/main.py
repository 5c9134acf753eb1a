"""
Settlement Engine - Backend API
Earnings ledger, seller payouts and payout batch trigger
"""
import logging
import time
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables before settings are read
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from settlement.api import earnings, payouts
from settlement.core.config import settings
from settlement.core.database import check_connection
from settlement.core.logging_config import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

# Crear aplicación FastAPI
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION
)

app.include_router(earnings.router)
app.include_router(payouts.router)


@app.get("/")
def root():
    """Endpoint raíz - Verificación de estado de la API"""
    return {
        "message": "Settlement API",
        "status": "online",
        "version": settings.API_VERSION
    }


@app.get("/health")
def health():
    """Health check endpoint para monitoreo - tests database connectivity"""
    start_time = time.time()

    db_status = "unknown"
    db_latency_ms = None
    db_error = None

    try:
        # Fast check: single attempt
        db_latency_ms = check_connection(max_retries=1, retry_delay=0.5)
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.warning(f"Health check database probe failed: {e}")
        db_status = "disconnected"
        db_error = str(e)

    total_latency_ms = round((time.time() - start_time) * 1000, 2)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "settlement-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error
        },
        "total_latency_ms": total_latency_ms
    }
