"""
Competitor Intel - Competitor Pydantic Schemas

Request fields are optional at the schema level; presence and enum checks
happen in the catalog service so every failure surfaces as one 400 message.
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from schemas.sources import SourceResponse
from schemas.claims import ClaimResponse


class CompetitorCreate(BaseModel):
    name: Optional[str] = None
    tag: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None


class CompetitorUpdate(CompetitorCreate):
    pass


class CompetitorResponse(BaseModel):
    id: int
    name: str
    slug: str
    website: Optional[str] = None
    notes: Optional[str] = None
    tag: str
    is_baseline: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CompetitorWithStats(CompetitorResponse):
    source_count: int = 0
    claim_count: int = 0
    verified_count: int = 0


class CompetitorDetail(CompetitorResponse):
    sources: List[SourceResponse] = []
    claims: List[ClaimResponse] = []
