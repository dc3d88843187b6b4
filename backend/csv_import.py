"""
CSV Import Reconciler for Competitor Intel

Bulk-loads competitors, sources and claims from one CSV payload.

Pipeline:
1. Parse header + rows (double quotes protect embedded commas).
2. Reject the whole file if a required column is missing.
3. Validate every row against the shared enumerations, collecting all errors.
   Any error rejects the whole file; nothing is written.
4. Group rows competitor -> source_url -> claim and reconcile each level
   against existing rows by natural key:
   - competitor: exact name
   - source: (competitor_id, url)
   - claim: (competitor_id, category, claim_text)
   Existing rows are reused, missing rows are created.

Reconciliation is best effort: each unit commits on its own, and a storage
failure skips that unit (and everything beneath it) without undoing earlier
units. Re-importing the same file creates nothing.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from constants import (
    CLAIM_CATEGORIES, CLAIM_TYPES, DEFAULT_TIER, OPTIONAL_CSV_COLUMNS, REQUIRED_CSV_COLUMNS, SOURCE_TYPES,
    TIERS,
)
from database import (
    Claim, Competitor, Source,
    find_claim, get_competitor_by_id, get_competitor_by_name, get_source_by_url, insert_row,
)
from errors import ConflictError, StorageError, ValidationError
from services.catalog_service import apply_claim_status
from utils.text_utils import clean_optional, generate_slug

logger = logging.getLogger(__name__)

# Data rows are reported by spreadsheet line: +1 for the header, +1 for 1-indexing
ROW_NUMBER_OFFSET = 2


@dataclass
class ImportStats:
    """Aggregate counters returned to the caller."""
    competitors_created: int = 0
    competitors_existing: int = 0
    sources_created: int = 0
    claims_created: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class ParsedCSV:
    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)


# ==============================================================================
# Parsing
# ==============================================================================

def _strip_field(value: str) -> str:
    """Trim whitespace, then drop one enclosing quote at either end."""
    value = value.strip()
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def split_csv_line(line: str) -> List[str]:
    """Split one line on commas that are outside double quotes.

    Every '"' toggles the in-quotes state and is not kept in the field.
    """
    values = []
    current = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            values.append(_strip_field("".join(current)))
            current = []
        else:
            current.append(char)
    values.append(_strip_field("".join(current)))

    return values


def parse_csv(content: str) -> ParsedCSV:
    """Parse CSV text into a header list and raw data rows (single-line rows).

    Rows are split on line feeds only; U+2028 and other Unicode line breaks
    inside a field stay part of that field.
    """
    lines = [line.rstrip("\r") for line in content.strip().split("\n")]
    if not lines[0]:
        return ParsedCSV(headers=[])

    headers = [_strip_field(h) for h in lines[0].split(",")]
    rows = [split_csv_line(line) for line in lines[1:]]
    return ParsedCSV(headers=headers, rows=rows)


def rows_to_records(parsed: ParsedCSV) -> List[Dict[str, str]]:
    """Map each row onto the header order; missing trailing cells become ''."""
    records = []
    for row in parsed.rows:
        record = {}
        for i, header in enumerate(parsed.headers):
            record[header] = row[i] if i < len(row) else ""
        records.append(record)
    return records


# ==============================================================================
# Validation
# ==============================================================================

def missing_columns(headers: List[str]) -> List[str]:
    return [col for col in REQUIRED_CSV_COLUMNS if col not in headers]


def validate_row(record: Dict[str, str], row_number: int) -> List[str]:
    """Return every problem with one record; empty list means valid."""
    errors = []

    if not record.get("competitor_name"):
        errors.append(f"Row {row_number}: competitor_name is required")

    if not record.get("source_url"):
        errors.append(f"Row {row_number}: source_url is required")

    source_type = record.get("source_type", "")
    if source_type not in SOURCE_TYPES:
        errors.append(f'Row {row_number}: invalid source_type "{source_type}"')

    category = record.get("claim_category", "")
    if category not in CLAIM_CATEGORIES:
        errors.append(f'Row {row_number}: invalid claim_category "{category}"')

    if not record.get("claim_text"):
        errors.append(f"Row {row_number}: claim_text is required")

    claim_type = record.get("claim_type", "")
    if claim_type not in CLAIM_TYPES:
        errors.append(f'Row {row_number}: invalid claim_type "{claim_type}"')

    tag = record.get("competitor_tag")
    if tag and tag not in TIERS:
        errors.append(f'Row {row_number}: invalid competitor_tag "{tag}"')

    return errors


def validate_records(records: List[Dict[str, str]]) -> List[str]:
    errors = []
    for i, record in enumerate(records):
        errors.extend(validate_row(record, i + ROW_NUMBER_OFFSET))
    return errors


def group_records(records: List[Dict[str, str]]) -> Dict[str, Dict[str, List[Dict[str, str]]]]:
    """competitor_name -> source_url -> rows, preserving first-seen order."""
    grouped: Dict[str, Dict[str, List[Dict[str, str]]]] = {}
    for record in records:
        by_source = grouped.setdefault(record["competitor_name"], {})
        by_source.setdefault(record["source_url"], []).append(record)
    return grouped


# ==============================================================================
# Reconciliation
# ==============================================================================

class CSVImportReconciler:
    """
    Validates a CSV payload and reconciles it into the database.

    Usage:
        stats = CSVImportReconciler(db).import_csv(csv_text)
        stats.to_dict()
        # {"competitors_created": 2, "competitors_existing": 1, ...}
    """

    def __init__(self, db: Session):
        self.db = db

    def prepare(self, content: Optional[str]) -> List[Dict[str, str]]:
        """Parse and validate; raises ValidationError with every problem found."""
        if not content or not isinstance(content, str):
            raise ValidationError("csv_content is required")

        parsed = parse_csv(content)
        missing = missing_columns(parsed.headers)
        if missing:
            raise ValidationError(
                f"Missing required columns: {', '.join(missing)}", details=missing
            )

        ignored = [h for h in parsed.headers if h not in REQUIRED_CSV_COLUMNS + OPTIONAL_CSV_COLUMNS]
        if ignored:
            logger.debug(f"Ignoring unknown CSV columns: {', '.join(ignored)}")

        records = rows_to_records(parsed)
        errors = validate_records(records)
        if errors:
            logger.info(f"CSV import rejected: {len(errors)} validation errors")
            raise ValidationError("Validation failed", details=errors)
        return records

    def import_csv(self, content: Optional[str]) -> ImportStats:
        records = self.prepare(content)
        stats = ImportStats()

        for competitor_name, by_source in group_records(records).items():
            first_row = next(iter(by_source.values()))[0]
            competitor_id = self._reconcile_competitor(competitor_name, first_row, stats)
            if competitor_id is None:
                continue

            for source_url, source_rows in by_source.items():
                source_id = self._reconcile_source(competitor_id, source_url, source_rows[0], stats)
                if source_id is None:
                    continue

                for row in source_rows:
                    self._reconcile_claim(competitor_id, source_id, row, stats)

        logger.info(
            f"CSV import complete: {stats.competitors_created} competitors created, "
            f"{stats.competitors_existing} existing, {stats.sources_created} sources, "
            f"{stats.claims_created} claims"
        )
        return stats

    def _reconcile_competitor(
        self, name: str, first_row: Dict[str, str], stats: ImportStats
    ) -> Optional[int]:
        existing = get_competitor_by_name(self.db, name)
        if existing is not None:
            stats.competitors_existing += 1
            return existing.id

        try:
            competitor = insert_row(self.db, Competitor(
                name=name,
                slug=generate_slug(name),
                website=first_row.get("competitor_website") or None,
                tag=first_row.get("competitor_tag") or DEFAULT_TIER,
                is_baseline=False,
            ))
        except (StorageError, ConflictError) as e:
            logger.error(f"Failed to create competitor {name!r}: {e.message}")
            return None

        stats.competitors_created += 1
        return competitor.id

    def _reconcile_source(
        self, competitor_id: int, url: str, first_row: Dict[str, str], stats: ImportStats
    ) -> Optional[int]:
        # Re-check the owner so a competitor removed mid-import is not referenced
        if get_competitor_by_id(self.db, competitor_id) is None:
            logger.error(f"Competitor {competitor_id} vanished before source {url!r}")
            return None

        existing = get_source_by_url(self.db, competitor_id, url)
        if existing is not None:
            return existing.id

        try:
            source = insert_row(self.db, Source(
                competitor_id=competitor_id,
                url=url,
                source_type=first_row["source_type"],
            ))
        except (StorageError, ConflictError) as e:
            logger.error(f"Failed to create source {url!r}: {e.message}")
            return None

        stats.sources_created += 1
        return source.id

    def _reconcile_claim(
        self, competitor_id: int, source_id: int, row: Dict[str, str], stats: ImportStats
    ):
        category, claim_text = row["claim_category"], row["claim_text"]
        if find_claim(self.db, competitor_id, category, claim_text) is not None:
            logger.debug(f"Skipping duplicate claim for competitor {competitor_id}: {category}")
            return

        claim = Claim(
            competitor_id=competitor_id,
            source_id=source_id,
            category=category,
            claim_text=claim_text,
            claim_type=row["claim_type"],
            citation=clean_optional(row.get("citation")),
            internal_note=clean_optional(row.get("internal_note")),
        )
        for key, value in apply_claim_status(claim, "pending").items():
            setattr(claim, key, value)

        try:
            insert_row(self.db, claim)
        except (StorageError, ConflictError) as e:
            logger.error(f"Failed to create claim for competitor {competitor_id}: {e.message}")
            return

        stats.claims_created += 1


def import_csv(db: Session, content: Optional[str]) -> ImportStats:
    """Convenience wrapper used by the router and the tests."""
    return CSVImportReconciler(db).import_csv(content)
