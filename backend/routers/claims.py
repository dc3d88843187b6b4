"""
Competitor Intel - Claims Router

Endpoints:
- POST   /api/claims - Create a pending claim
- GET    /api/claims/{id} - Get a claim
- PUT    /api/claims/{id} - Partial update (status goes through the state machine)
- PATCH  /api/claims/{id} - Edit claim_text / source_url / verbatim_quote
- PATCH  /api/claims/{id}/verify - Verification toggle
- DELETE /api/claims/{id} - Delete a claim
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import require_session
from schemas.claims import ClaimCreate, ClaimDetailsPatch, ClaimResponse, ClaimUpdate, ClaimVerifyRequest
from services import catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/claims", tags=["Claims"], dependencies=[Depends(require_session)])


@router.post("", status_code=201)
def create_claim(payload: ClaimCreate, db: Session = Depends(get_db)):
    claim = catalog_service.create_claim(db, **payload.model_dump())
    return {"data": ClaimResponse.model_validate(claim)}


@router.get("/{claim_id}")
def get_claim(claim_id: int, db: Session = Depends(get_db)):
    return {"data": ClaimResponse.model_validate(catalog_service.get_claim(db, claim_id))}


@router.put("/{claim_id}")
def update_claim(claim_id: int, payload: ClaimUpdate, db: Session = Depends(get_db)):
    claim = catalog_service.update_claim(db, claim_id, payload.model_dump(exclude_unset=True))
    return {"data": ClaimResponse.model_validate(claim)}


@router.patch("/{claim_id}")
def patch_claim(claim_id: int, payload: ClaimDetailsPatch, db: Session = Depends(get_db)):
    claim = catalog_service.patch_claim_details(db, claim_id, payload.model_dump(exclude_unset=True))
    return {"data": ClaimResponse.model_validate(claim)}


@router.patch("/{claim_id}/verify")
def verify_claim(claim_id: int, payload: ClaimVerifyRequest, db: Session = Depends(get_db)):
    claim = catalog_service.set_claim_verified(
        db, claim_id, payload.verified, verified_by=payload.verified_by
    )
    return {"data": ClaimResponse.model_validate(claim)}


@router.delete("/{claim_id}")
def delete_claim(claim_id: int, db: Session = Depends(get_db)):
    catalog_service.delete_claim(db, claim_id)
    return {"success": True}
