"""
Competitor Intel - CSV Import Pydantic Schemas
"""

from typing import Any, Optional
from pydantic import BaseModel


class CSVImportRequest(BaseModel):
    # Any type is accepted here; the importer answers non-strings with a 400
    csv_content: Optional[Any] = None


class ImportStatsResponse(BaseModel):
    competitors_created: int
    competitors_existing: int
    sources_created: int
    claims_created: int
