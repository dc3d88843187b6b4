"""
Competitor Intel - Comparison Matrix Router

Endpoints:
- GET /api/matrix?tiers=core,adjacent - Assembled competitor x category grid
- GET /api/matrix/cell?competitor_id=3&category=Term%20length - One cell with its details
- GET /api/matrix/export?format=csv&competitor_ids=3,5 - Download an export
"""

import logging
from dataclasses import asdict
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from comparison_matrix import build_matrix, select_export_competitors
from constants import CLAIM_CATEGORIES, TIERS
from database import get_db, list_claims, list_competitors
from dependencies import require_session
from errors import ValidationError
from matrix_export import EXPORT_FORMATS, MatrixExporter, export_filename, media_type
from metrics import track_export
from services import catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/matrix", tags=["Matrix"], dependencies=[Depends(require_session)])


def _parse_tiers(tiers: Optional[str]) -> Optional[List[str]]:
    if tiers is None:
        return None
    selected = [t.strip() for t in tiers.split(",") if t.strip()]
    invalid = [t for t in selected if t not in TIERS]
    if invalid:
        raise ValidationError(f"Invalid tier: {', '.join(invalid)}", details=list(TIERS))
    return selected


def _parse_ids(competitor_ids: Optional[str]) -> Optional[List[int]]:
    if competitor_ids is None:
        return None
    try:
        return [int(part) for part in competitor_ids.split(",") if part.strip()]
    except ValueError as e:
        raise ValidationError("competitor_ids must be a comma-separated list of integers") from e


@router.get("")
def get_matrix(tiers: Optional[str] = Query(None), db: Session = Depends(get_db)):
    matrix = build_matrix(
        list_competitors(db),
        list_claims(db),
        categories=CLAIM_CATEGORIES,
        tiers=_parse_tiers(tiers),
    )
    return {"data": matrix.to_dict()}


@router.get("/cell")
def get_matrix_cell(competitor_id: int = Query(...), category: str = Query(...), db: Session = Depends(get_db)):
    if category not in CLAIM_CATEGORIES:
        raise ValidationError(f"Invalid category: {category}", details=list(CLAIM_CATEGORIES))

    competitor = catalog_service.get_competitor(db, competitor_id)
    matrix = build_matrix([competitor], list_claims(db, [competitor_id]), categories=[category], presorted=True)
    cell = matrix.cell(category, competitor_id)
    return {"data": {**asdict(cell), "has_details": cell.has_details}}


@router.get("/export")
def export_matrix(
    format: str = Query("investor"),
    competitor_ids: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    if format not in EXPORT_FORMATS:
        raise ValidationError(f"Unsupported export format: {format}", details=sorted(EXPORT_FORMATS))

    selected = select_export_competitors(list_competitors(db), _parse_ids(competitor_ids))
    claims = list_claims(db, [c.id for c in selected])
    content = MatrixExporter(selected, claims).render(format)
    track_export(format)

    return Response(
        content=content,
        media_type=media_type(format),
        headers={"Content-Disposition": f'attachment; filename="{export_filename(format)}"'},
    )
