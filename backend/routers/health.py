"""
Competitor Intel - Health & Version Router

Endpoints:
- GET /api/version - Application version info
- GET /health - Liveness probe (checks the database)
- GET /metrics - Prometheus metrics, or a JSON summary when disabled
"""

import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.responses import Response

from constants import APP_NAME, __version__
from database import get_db
from metrics import CONTENT_TYPE_LATEST, METRICS_ENABLED, generate_latest, get_metrics_summary

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/api/version")
def get_version():
    """Return application version information."""
    return {"version": __version__, "name": APP_NAME}


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy", "version": __version__}
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy"})


@router.get("/metrics")
def metrics_endpoint():
    if METRICS_ENABLED:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
    return get_metrics_summary()
