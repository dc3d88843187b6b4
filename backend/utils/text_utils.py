"""
Competitor Intel - Text Utilities

Slug generation and input normalisation shared by the catalog service and
the CSV importer.
"""

import re
from datetime import date
from typing import Optional

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def generate_slug(name: str) -> str:
    """Lowercase, collapse every run of non [a-z0-9] to '-', trim edge dashes."""
    slug = _NON_SLUG_CHARS.sub("-", name.lower())
    return slug.strip("-")


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Trim a free-text field; empty or missing becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def format_date_iso(day: Optional[date] = None) -> str:
    """YYYY-MM-DD stamp used in export headers and filenames."""
    return (day or date.today()).isoformat()

