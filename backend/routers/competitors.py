"""
Competitor Intel - Competitors CRUD Router

Endpoints:
- GET    /api/competitors - Non-baseline competitors with counts
- GET    /api/competitors/baseline - The baseline competitor
- GET    /api/competitors/{id} - Competitor with its sources and claims
- POST   /api/competitors - Create competitor
- PUT    /api/competitors/{id} - Replace competitor fields (baseline: 403)
- DELETE /api/competitors/{id} - Delete competitor and its sources/claims (baseline: 403)
- GET    /api/competitors/{id}/sources - Sources, newest first
- GET    /api/competitors/{id}/claims - Claims by category, newest first
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import require_session
from schemas.competitors import (
    CompetitorCreate, CompetitorDetail, CompetitorResponse, CompetitorUpdate, CompetitorWithStats,
)
from schemas.claims import ClaimResponse
from schemas.sources import SourceResponse
from services import catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/competitors",
    tags=["Competitors"],
    dependencies=[Depends(require_session)],
)


@router.get("")
def list_competitors(db: Session = Depends(get_db)):
    rows = catalog_service.list_competitors_with_stats(db)
    return {
        "data": [
            CompetitorWithStats(
                **CompetitorResponse.model_validate(row["competitor"]).model_dump(),
                source_count=row["source_count"],
                claim_count=row["claim_count"],
                verified_count=row["verified_count"],
            )
            for row in rows
        ]
    }


@router.get("/baseline")
def get_baseline(db: Session = Depends(get_db)):
    return {"data": CompetitorResponse.model_validate(catalog_service.get_baseline(db))}


@router.get("/{competitor_id}")
def get_competitor(competitor_id: int, db: Session = Depends(get_db)):
    competitor = catalog_service.get_competitor(db, competitor_id)
    return {
        "data": CompetitorDetail(
            **CompetitorResponse.model_validate(competitor).model_dump(),
            sources=[SourceResponse.model_validate(s) for s in catalog_service.list_sources(db, competitor_id)],
            claims=[ClaimResponse.model_validate(c) for c in catalog_service.list_claims(db, competitor_id)],
        )
    }


@router.post("", status_code=201)
def create_competitor(payload: CompetitorCreate, db: Session = Depends(get_db)):
    competitor = catalog_service.create_competitor(
        db,
        name=payload.name,
        tag=payload.tag,
        website=payload.website,
        notes=payload.notes,
    )
    return {"data": CompetitorResponse.model_validate(competitor)}


@router.put("/{competitor_id}")
def update_competitor(competitor_id: int, payload: CompetitorUpdate, db: Session = Depends(get_db)):
    competitor = catalog_service.update_competitor(
        db,
        competitor_id,
        name=payload.name,
        tag=payload.tag,
        website=payload.website,
        notes=payload.notes,
    )
    return {"data": CompetitorResponse.model_validate(competitor)}


@router.delete("/{competitor_id}")
def delete_competitor(competitor_id: int, db: Session = Depends(get_db)):
    catalog_service.delete_competitor(db, competitor_id)
    return {"success": True}


@router.get("/{competitor_id}/sources")
def list_competitor_sources(competitor_id: int, db: Session = Depends(get_db)):
    sources = catalog_service.list_sources(db, competitor_id)
    return {"data": [SourceResponse.model_validate(s) for s in sources]}


@router.get("/{competitor_id}/claims")
def list_competitor_claims(competitor_id: int, db: Session = Depends(get_db)):
    claims = catalog_service.list_claims(db, competitor_id)
    return {"data": [ClaimResponse.model_validate(c) for c in claims]}
