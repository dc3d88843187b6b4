"""
Competitor Intel - Sources Router

Endpoints:
- POST   /api/sources - Record a source for a competitor
- GET    /api/sources/{id}/claims - Claims citing the source
- DELETE /api/sources/{id} - Delete a source; citing claims keep existing
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import require_session
from schemas.claims import ClaimResponse
from schemas.sources import SourceCreate, SourceResponse
from services import catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sources", tags=["Sources"], dependencies=[Depends(require_session)])


@router.post("", status_code=201)
def create_source(payload: SourceCreate, db: Session = Depends(get_db)):
    source = catalog_service.create_source(
        db,
        competitor_id=payload.competitor_id,
        url=payload.url,
        source_type=payload.source_type,
    )
    return {"data": SourceResponse.model_validate(source)}


@router.get("/{source_id}/claims")
def list_source_claims(source_id: int, db: Session = Depends(get_db)):
    claims = catalog_service.list_source_claims(db, source_id)
    return {"data": [ClaimResponse.model_validate(c) for c in claims]}


@router.delete("/{source_id}")
def delete_source(source_id: int, db: Session = Depends(get_db)):
    detached = catalog_service.delete_source(db, source_id)
    return {"success": True, "claims_detached": detached}
