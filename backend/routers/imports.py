"""
Competitor Intel - CSV Import Router

Endpoints:
- POST /api/import-csv - JSON body {"csv_content": "..."}
- POST /api/import-csv/upload - multipart file upload

Both return {"success": true, "stats": {...}} or a 400 with
{"error": "Validation failed", "details": [...]}.
"""

import logging
from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from csv_import import import_csv
from database import get_db
from dependencies import require_session
from errors import ValidationError
from metrics import track_import, track_import_rejected
from rate_limit import IMPORT_RATE_LIMIT, limiter
from schemas.imports import CSVImportRequest, ImportStatsResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/import-csv", tags=["Import"], dependencies=[Depends(require_session)])


def _run_import(db: Session, content):
    try:
        stats = import_csv(db, content)
    except ValidationError:
        track_import_rejected()
        raise
    track_import(stats.to_dict())
    return {"success": True, "stats": ImportStatsResponse(**stats.to_dict())}


@router.post("")
@limiter.limit(IMPORT_RATE_LIMIT)
async def import_csv_json(request: Request, db: Session = Depends(get_db)):
    try:
        body = await request.json()
    except ValueError:
        logger.info("CSV import body is not valid JSON")
        body = None
    payload = CSVImportRequest.model_validate(body if isinstance(body, dict) else {})
    return _run_import(db, payload.csv_content)


@router.post("/upload")
@limiter.limit(IMPORT_RATE_LIMIT)
async def import_csv_upload(request: Request, file: UploadFile = File(...), db: Session = Depends(get_db)):
    raw = await file.read()
    try:
        content = raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValidationError("CSV file must be UTF-8 encoded") from e
    logger.info(f"CSV upload received: {file.filename} ({len(raw)} bytes)")
    return _run_import(db, content)
