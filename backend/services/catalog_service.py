"""
Competitor Intel - Catalog Service

Single-entity operations on competitors, sources and claims. Every function
fails fast with one domain error (see errors.py); routers translate those to
HTTP responses.

Claim verification state lives in three denormalized columns (status,
verified, verified_by). apply_claim_status() is the only writer of those
columns, so they cannot drift apart.

Usage:
    from services import catalog_service
    competitor = catalog_service.create_competitor(db, name="Ledn", tag="core")
    catalog_service.set_claim_verified(db, claim_id, True, verified_by="analyst")
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from constants import (
    CLAIM_CATEGORIES, CLAIM_STATUSES, CLAIM_TYPES, DEFAULT_VERIFIER, SOURCE_TYPES, TIERS,
)
from database import (
    Claim, Competitor, Source,
    delete_row, detach_claims_from_source, get_baseline_competitor, get_claim_by_id,
    get_competitor_by_id, get_competitor_by_name, get_source_by_id, insert_row,
    list_claims_for_competitor, list_claims_for_source, list_competitors, list_sources_for_competitor,
    update_row,
)
from errors import BaselineProtectedError, ConflictError, NotFoundError, ValidationError
from utils.text_utils import clean_optional, generate_slug

logger = logging.getLogger(__name__)


# ==============================================================================
# Competitors
# ==============================================================================

def _require_competitor(db: Session, competitor_id: int) -> Competitor:
    competitor = get_competitor_by_id(db, competitor_id)
    if competitor is None:
        raise NotFoundError("Competitor not found")
    return competitor


def _require_name(name: Optional[str]) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name is required")
    return name.strip()


def _require_tag(tag: Optional[str]) -> str:
    if tag not in TIERS:
        raise ValidationError("Valid tag is required (core, adjacent, contrast)")
    return tag


def list_competitors_with_stats(db: Session) -> List[Dict[str, Any]]:
    """Non-baseline competitors by name, each with source/claim/verified counts."""
    source_counts = dict(db.execute(
        select(Source.competitor_id, func.count(Source.id)).group_by(Source.competitor_id)
    ).all())
    claim_counts = {}
    verified_counts = {}
    for competitor_id, verified, count in db.execute(
        select(Claim.competitor_id, Claim.verified, func.count(Claim.id))
        .group_by(Claim.competitor_id, Claim.verified)
    ).all():
        claim_counts[competitor_id] = claim_counts.get(competitor_id, 0) + count
        if verified:
            verified_counts[competitor_id] = count

    return [
        {
            "competitor": competitor,
            "source_count": source_counts.get(competitor.id, 0),
            "claim_count": claim_counts.get(competitor.id, 0),
            "verified_count": verified_counts.get(competitor.id, 0),
        }
        for competitor in list_competitors(db, include_baseline=False)
    ]


def get_competitor(db: Session, competitor_id: int) -> Competitor:
    return _require_competitor(db, competitor_id)


def get_baseline(db: Session) -> Competitor:
    baseline = get_baseline_competitor(db)
    if baseline is None:
        raise NotFoundError("Baseline competitor not configured")
    return baseline


def create_competitor(
    db: Session,
    name: Optional[str],
    tag: Optional[str],
    website: Optional[str] = None,
    notes: Optional[str] = None,
) -> Competitor:
    """Create a non-baseline competitor. Duplicate names raise ConflictError."""
    name = _require_name(name)
    tag = _require_tag(tag)

    if get_competitor_by_name(db, name) is not None:
        raise ConflictError("A competitor with this name already exists")

    competitor = insert_row(db, Competitor(
        name=name,
        slug=generate_slug(name),
        website=clean_optional(website),
        notes=clean_optional(notes),
        tag=tag,
        is_baseline=False,
    ))
    logger.info(f"Created competitor {competitor.id}: {competitor.name} ({competitor.tag})")
    return competitor


def update_competitor(
    db: Session,
    competitor_id: int,
    name: Optional[str],
    tag: Optional[str],
    website: Optional[str] = None,
    notes: Optional[str] = None,
) -> Competitor:
    """Full-field replace. The baseline rejects every update, whatever the payload."""
    competitor = _require_competitor(db, competitor_id)
    if competitor.is_baseline:
        raise BaselineProtectedError("Cannot modify baseline competitor")

    name = _require_name(name)
    tag = _require_tag(tag)

    clash = get_competitor_by_name(db, name)
    if clash is not None and clash.id != competitor.id:
        raise ConflictError("A competitor with this name already exists")

    return update_row(
        db, competitor,
        name=name,
        slug=generate_slug(name),
        website=clean_optional(website),
        notes=clean_optional(notes),
        tag=tag,
    )


def delete_competitor(db: Session, competitor_id: int) -> None:
    """Delete a competitor; its sources and claims cascade with it."""
    competitor = _require_competitor(db, competitor_id)
    if competitor.is_baseline:
        raise BaselineProtectedError("Cannot delete baseline competitor")

    name = competitor.name
    delete_row(db, competitor)
    logger.info(f"Deleted competitor {competitor_id}: {name}")


# ==============================================================================
# Sources
# ==============================================================================

def list_sources(db: Session, competitor_id: int) -> List[Source]:
    _require_competitor(db, competitor_id)
    return list_sources_for_competitor(db, competitor_id)


def create_source(
    db: Session,
    competitor_id: Optional[int],
    url: Optional[str],
    source_type: Optional[str],
) -> Source:
    if not competitor_id:
        raise ValidationError("competitor_id is required")
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("URL is required")
    if source_type not in SOURCE_TYPES:
        raise ValidationError(
            "Valid source_type is required (website, whitepaper, press, social, other)"
        )
    _require_competitor(db, competitor_id)

    return insert_row(db, Source(
        competitor_id=competitor_id,
        url=url.strip(),
        source_type=source_type,
    ))


def list_source_claims(db: Session, source_id: int) -> List[Claim]:
    if get_source_by_id(db, source_id) is None:
        raise NotFoundError("Source not found")
    return list_claims_for_source(db, source_id)


def delete_source(db: Session, source_id: int) -> int:
    """Delete a source. Claims citing it survive with source_id set to NULL.

    Returns the number of claims that were detached.
    """
    source = get_source_by_id(db, source_id)
    if source is None:
        raise NotFoundError("Source not found")

    detached = detach_claims_from_source(db, source_id)
    delete_row(db, source)
    logger.info(f"Deleted source {source_id} ({detached} claims detached)")
    return detached


# ==============================================================================
# Claims
# ==============================================================================

def apply_claim_status(claim: Claim, status: str, verified_by: Optional[str] = None) -> Dict[str, Any]:
    """Compute the consistent (status, verified, verified_by) triple for a claim.

    Transitions: pending <-> verified via the verification toggle, and any
    state -> rejected via an explicit status update. verified_by is kept only
    while status is 'verified'.
    """
    if status not in CLAIM_STATUSES:
        raise ValidationError("Invalid status")

    if status == "verified":
        return {
            "status": "verified",
            "verified": True,
            "verified_by": verified_by or claim.verified_by or DEFAULT_VERIFIER,
        }
    return {"status": status, "verified": False, "verified_by": None}


def _require_claim(db: Session, claim_id: int) -> Claim:
    claim = get_claim_by_id(db, claim_id)
    if claim is None:
        raise NotFoundError("Claim not found")
    return claim


def list_claims(db: Session, competitor_id: int) -> List[Claim]:
    _require_competitor(db, competitor_id)
    return list_claims_for_competitor(db, competitor_id)


def get_claim(db: Session, claim_id: int) -> Claim:
    return _require_claim(db, claim_id)


def create_claim(
    db: Session,
    competitor_id: Optional[int],
    category: Optional[str],
    claim_text: Optional[str],
    claim_type: Optional[str],
    source_id: Optional[int] = None,
    citation: Optional[str] = None,
    internal_note: Optional[str] = None,
    source_url: Optional[str] = None,
    verbatim_quote: Optional[str] = None,
) -> Claim:
    if not competitor_id:
        raise ValidationError("competitor_id is required")
    if category not in CLAIM_CATEGORIES:
        raise ValidationError("Valid category is required")
    if not isinstance(claim_text, str) or not claim_text.strip():
        raise ValidationError("claim_text is required")
    if claim_type not in CLAIM_TYPES:
        raise ValidationError("Valid claim_type is required (explicit, implied)")

    _require_competitor(db, competitor_id)
    if source_id and get_source_by_id(db, source_id) is None:
        raise NotFoundError("Source not found")

    claim = Claim(
        competitor_id=competitor_id,
        source_id=source_id or None,
        category=category,
        claim_text=claim_text.strip(),
        claim_type=claim_type,
        citation=clean_optional(citation),
        internal_note=clean_optional(internal_note),
        source_url=clean_optional(source_url),
        verbatim_quote=clean_optional(verbatim_quote),
    )
    for key, value in apply_claim_status(claim, "pending").items():
        setattr(claim, key, value)
    return insert_row(db, claim)


def update_claim(db: Session, claim_id: int, changes: Dict[str, Any]) -> Claim:
    """Partial update. Only keys present in `changes` are touched."""
    claim = _require_claim(db, claim_id)
    values: Dict[str, Any] = {}

    if "category" in changes:
        if changes["category"] not in CLAIM_CATEGORIES:
            raise ValidationError("Invalid category")
        values["category"] = changes["category"]

    if "claim_text" in changes:
        text = changes["claim_text"]
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("claim_text is required")
        values["claim_text"] = text.strip()

    if "claim_type" in changes:
        if changes["claim_type"] not in CLAIM_TYPES:
            raise ValidationError("Invalid claim_type")
        values["claim_type"] = changes["claim_type"]

    if "status" in changes:
        values.update(apply_claim_status(claim, changes["status"]))

    if "source_id" in changes:
        source_id = changes["source_id"] or None
        if source_id is not None and get_source_by_id(db, source_id) is None:
            raise NotFoundError("Source not found")
        values["source_id"] = source_id

    for field in ("citation", "internal_note", "source_url", "verbatim_quote"):
        if field in changes:
            values[field] = clean_optional(changes[field])

    return update_row(db, claim, **values)


def patch_claim_details(db: Session, claim_id: int, changes: Dict[str, Any]) -> Claim:
    """Edit only the text and evidence fields shown in the claim detail view."""
    allowed = {k: v for k, v in changes.items() if k in ("claim_text", "source_url", "verbatim_quote")}
    return update_claim(db, claim_id, allowed)


def set_claim_verified(
    db: Session, claim_id: int, verified: bool, verified_by: Optional[str] = None
) -> Claim:
    """The verification toggle: verified -> status 'verified', otherwise 'pending'."""
    if not isinstance(verified, bool):
        raise ValidationError("verified boolean is required")
    claim = _require_claim(db, claim_id)
    values = apply_claim_status(claim, "verified" if verified else "pending", verified_by)
    claim = update_row(db, claim, **values)
    logger.info(f"Claim {claim_id} marked {claim.status}")
    return claim


def delete_claim(db: Session, claim_id: int) -> None:
    claim = _require_claim(db, claim_id)
    delete_row(db, claim)


# ==============================================================================
# Dashboard
# ==============================================================================

def get_dashboard_stats(db: Session) -> Dict[str, int]:
    return {
        "total_competitors": db.scalar(
            select(func.count(Competitor.id)).where(Competitor.is_baseline.is_(False))
        ) or 0,
        "total_sources": db.scalar(select(func.count(Source.id))) or 0,
        "total_claims": db.scalar(select(func.count(Claim.id))) or 0,
        "verified_claims": db.scalar(
            select(func.count(Claim.id)).where(Claim.verified.is_(True))
        ) or 0,
    }
