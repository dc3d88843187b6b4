"""
Comparison Matrix Assembler for Competitor Intel

Builds the competitor x category grid shown on the comparison page and fed to
every export format.

Rules:
- The baseline competitor is always present, whatever tiers are selected.
- Column order: baseline, then tier (core < adjacent < contrast), then name
  (case-sensitive ordinal).
- One claim per cell. When a competitor has several claims in one category
  the most recently created wins (latest created_at, then highest id).
- Priority categories are flagged, never filtered out.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from constants import (
    CLAIM_CATEGORIES, DEFAULT_EXPORT_COMPETITORS, PRIORITY_CATEGORIES, TIER_ORDER, TIERS,
)

logger = logging.getLogger(__name__)

_PRIORITY_SET = frozenset(PRIORITY_CATEGORIES)


def is_priority_category(category: str) -> bool:
    return category in _PRIORITY_SET


@dataclass
class MatrixCell:
    """One (competitor, category) intersection."""
    category: str
    competitor_id: int
    competitor_name: str
    tag: str
    is_baseline: bool
    is_priority: bool
    claim_id: Optional[int] = None
    claim_text: Optional[str] = None
    verified: bool = False
    source_url: Optional[str] = None
    verbatim_quote: Optional[str] = None

    @property
    def has_claim(self) -> bool:
        return self.claim_id is not None

    @property
    def has_details(self) -> bool:
        return bool(self.source_url or self.verbatim_quote)


@dataclass
class MatrixColumn:
    competitor_id: int
    name: str
    tag: str
    is_baseline: bool
    verified_count: int = 0
    claim_count: int = 0

    @property
    def tier_label(self) -> str:
        return "Baseline" if self.is_baseline else self.tag

    @property
    def verified_summary(self) -> Optional[str]:
        """'X/Y verified' for competitor columns; the baseline has none."""
        if self.is_baseline:
            return None
        return f"{self.verified_count}/{self.claim_count} verified"


@dataclass
class ComparisonMatrix:
    columns: List[MatrixColumn]
    categories: List[str]
    rows: List[List[MatrixCell]] = field(default_factory=list)  # category-major

    def cell(self, category: str, competitor_id: int) -> Optional[MatrixCell]:
        for row in self.rows:
            if row and row[0].category == category:
                for cell in row:
                    if cell.competitor_id == competitor_id:
                        return cell
        return None

    def to_dict(self) -> dict:
        return {
            "competitors": [
                {
                    "id": col.competitor_id,
                    "name": col.name,
                    "tag": col.tag,
                    "is_baseline": col.is_baseline,
                    "tier_label": col.tier_label,
                    "verified_count": col.verified_count,
                    "claim_count": col.claim_count,
                    "verified_summary": col.verified_summary,
                }
                for col in self.columns
            ],
            "categories": [
                {"name": category, "is_priority": is_priority_category(category)}
                for category in self.categories
            ],
            "rows": [
                [
                    {
                        "competitor_id": cell.competitor_id,
                        "claim_id": cell.claim_id,
                        "claim_text": cell.claim_text,
                        "verified": cell.verified,
                        "has_details": cell.has_details,
                        "source_url": cell.source_url,
                        "verbatim_quote": cell.verbatim_quote,
                    }
                    for cell in row
                ]
                for row in self.rows
            ],
        }


# ==============================================================================
# Filtering & ordering
# ==============================================================================

def competitor_sort_key(competitor) -> Tuple[int, int, str]:
    return (
        0 if competitor.is_baseline else 1,
        TIER_ORDER.get(competitor.tag, len(TIER_ORDER) + 1),
        competitor.name,
    )


def filter_by_tiers(competitors: Iterable, tiers: Optional[Iterable[str]]) -> List:
    """Keep the baseline plus competitors whose tag is selected.

    tiers=None means every tier.
    """
    selected = frozenset(TIERS if tiers is None else tiers)
    return [c for c in competitors if c.is_baseline or c.tag in selected]


def sort_competitors(competitors: Iterable) -> List:
    return sorted(competitors, key=competitor_sort_key)


# ==============================================================================
# Cell lookup
# ==============================================================================

def _recency_key(claim) -> Tuple[datetime, int]:
    return (claim.created_at or datetime.min, claim.id or 0)


def index_claims(claims: Iterable) -> Dict[Tuple[int, str], object]:
    """Map (competitor_id, category) to the winning claim for that cell."""
    index: Dict[Tuple[int, str], object] = {}
    for claim in claims:
        key = (claim.competitor_id, claim.category)
        current = index.get(key)
        if current is None or _recency_key(claim) > _recency_key(current):
            index[key] = claim
    return index


def claim_counts(claims: Iterable) -> Dict[int, Tuple[int, int]]:
    """competitor_id -> (verified, total) over every claim, not just cell winners."""
    counts: Dict[int, Tuple[int, int]] = {}
    for claim in claims:
        verified, total = counts.get(claim.competitor_id, (0, 0))
        counts[claim.competitor_id] = (verified + (1 if claim.verified else 0), total + 1)
    return counts


# ==============================================================================
# Assembly
# ==============================================================================

def build_matrix(
    competitors: Iterable,
    claims: Sequence,
    categories: Sequence[str] = CLAIM_CATEGORIES,
    tiers: Optional[Iterable[str]] = None,
    presorted: bool = False,
) -> ComparisonMatrix:
    """Assemble the grid.

    presorted=True keeps the caller's competitor order (used by exports,
    where the caller picks the column order).
    """
    selected = filter_by_tiers(competitors, tiers)
    if not presorted:
        selected = sort_competitors(selected)

    by_cell = index_claims(claims)
    counts = claim_counts(claims)

    columns = []
    for competitor in selected:
        verified, total = counts.get(competitor.id, (0, 0))
        columns.append(MatrixColumn(
            competitor_id=competitor.id,
            name=competitor.name,
            tag=competitor.tag,
            is_baseline=competitor.is_baseline,
            verified_count=verified,
            claim_count=total,
        ))

    rows = []
    for category in categories:
        priority = is_priority_category(category)
        row = []
        for competitor in selected:
            claim = by_cell.get((competitor.id, category))
            row.append(MatrixCell(
                category=category,
                competitor_id=competitor.id,
                competitor_name=competitor.name,
                tag=competitor.tag,
                is_baseline=competitor.is_baseline,
                is_priority=priority,
                claim_id=claim.id if claim is not None else None,
                claim_text=claim.claim_text if claim is not None else None,
                verified=bool(claim.verified) if claim is not None else False,
                source_url=claim.source_url if claim is not None else None,
                verbatim_quote=claim.verbatim_quote if claim is not None else None,
            ))
        rows.append(row)

    return ComparisonMatrix(columns=columns, categories=list(categories), rows=rows)


# ==============================================================================
# Export selection
# ==============================================================================

def select_export_competitors(competitors: Sequence, selected_ids: Optional[Sequence[int]] = None) -> List:
    """Resolve the export column set.

    The baseline is always included and always first. The rest follow the
    caller's order; unknown ids are ignored. With no ids, the first
    DEFAULT_EXPORT_COMPETITORS non-baseline competitors in matrix order are used.
    """
    if selected_ids is None:
        return default_export_selection(competitors)

    ordered = sort_competitors(competitors)
    baseline = [c for c in ordered if c.is_baseline]
    by_id = {c.id: c for c in ordered if not c.is_baseline}
    chosen = []
    seen = set()
    for competitor_id in selected_ids:
        competitor = by_id.get(competitor_id)
        if competitor is not None and competitor_id not in seen:
            chosen.append(competitor)
            seen.add(competitor_id)

    if not baseline:
        logger.warning("Export requested with no baseline competitor configured")
    return baseline + chosen


def default_export_selection(competitors: Sequence) -> List:
    """Baseline plus the first DEFAULT_EXPORT_COMPETITORS others in matrix order."""
    ordered = sort_competitors(competitors)
    baseline = [c for c in ordered if c.is_baseline]
    others = [c for c in ordered if not c.is_baseline]
    return baseline + others[:DEFAULT_EXPORT_COMPETITORS]
