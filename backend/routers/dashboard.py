"""
Competitor Intel - Dashboard Router

Endpoints:
- GET /api/dashboard/stats - Totals for the dashboard cards
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import require_session
from services.catalog_service import get_dashboard_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"], dependencies=[Depends(require_session)])


@router.get("/stats")
def dashboard_stats(db: Session = Depends(get_db)):
    """Non-baseline competitors, sources, claims and verified claims."""
    return {"data": get_dashboard_stats(db)}
