"""
Competitor Intel - Shared Constants

Centralizes the version string and the fixed enumerations (claim categories,
source types, tiers) so the CSV importer, the comparison matrix and the REST
validators all check against the same immutable sets.
"""

import os

__version__ = "1.2.0"

APP_NAME = "Competitor Intel"

# =============================================================================
# CLAIM CATEGORIES
# Stored as plain text on claims; this order is the matrix row order.
# =============================================================================
CLAIM_CATEGORIES = (
    "Custody model",
    "Rehypothecation or collateral reuse",
    "Margin calls or liquidation triggers",
    "Term length",
    "Repayment requirements",
    "Drawdown mechanics",
    "Loan currency",
    "Availability for Australian customers",
    "Eligibility or KYC constraints",
    "Insurance or guarantees",
    "Jurisdiction and legal posture",
    "Custody and security claims",
    "Product structure",
)

# Subset highlighted in the matrix and summarised in the investor export.
PRIORITY_CATEGORIES = (
    "Custody model",
    "Rehypothecation or collateral reuse",
    "Margin calls or liquidation triggers",
    "Term length",
    "Repayment requirements",
    "Availability for Australian customers",
)

# =============================================================================
# ENUMERATIONS
# =============================================================================
SOURCE_TYPES = ("website", "whitepaper", "press", "social", "other")
TIERS = ("core", "adjacent", "contrast")
TIER_ORDER = {"core": 1, "adjacent": 2, "contrast": 3}
CLAIM_TYPES = ("explicit", "implied")
CLAIM_STATUSES = ("pending", "verified", "rejected")

DEFAULT_TIER = "core"
DEFAULT_VERIFIER = "User"

# =============================================================================
# CSV IMPORT COLUMNS
# =============================================================================
REQUIRED_CSV_COLUMNS = (
    "competitor_name",
    "source_url",
    "source_type",
    "claim_category",
    "claim_text",
    "claim_type",
)
OPTIONAL_CSV_COLUMNS = (
    "competitor_website",
    "competitor_tag",
    "citation",
    "internal_note",
)

# =============================================================================
# BASELINE & EXPORT LABELS
# =============================================================================
BASELINE_NAME = os.getenv("BASELINE_NAME", "Escape Hatch")

EXPORT_FILENAME_PREFIX = "escape-hatch-comparison"
SUMMARY_TITLE = "COMPETITIVE POSITIONING SUMMARY"
SUMMARY_SUBTITLE = f"{BASELINE_NAME} vs. Bitcoin-Backed Lending Market"

# Default number of non-baseline competitors preselected for export
DEFAULT_EXPORT_COMPETITORS = 4

PRIORITY_MARK = "△"
VERIFIED_MARK = "✓"
BASELINE_MARK = "■"
