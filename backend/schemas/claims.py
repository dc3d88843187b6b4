"""
Competitor Intel - Claim Pydantic Schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class ClaimCreate(BaseModel):
    competitor_id: Optional[int] = None
    source_id: Optional[int] = None
    category: Optional[str] = None
    claim_text: Optional[str] = None
    claim_type: Optional[str] = None
    citation: Optional[str] = None
    internal_note: Optional[str] = None
    source_url: Optional[str] = None
    verbatim_quote: Optional[str] = None


class ClaimUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""
    source_id: Optional[int] = None
    category: Optional[str] = None
    claim_text: Optional[str] = None
    claim_type: Optional[str] = None
    status: Optional[str] = None
    citation: Optional[str] = None
    internal_note: Optional[str] = None
    source_url: Optional[str] = None
    verbatim_quote: Optional[str] = None


class ClaimDetailsPatch(BaseModel):
    claim_text: Optional[str] = None
    source_url: Optional[str] = None
    verbatim_quote: Optional[str] = None


class ClaimVerifyRequest(BaseModel):
    verified: Optional[bool] = None
    verified_by: Optional[str] = None


class ClaimResponse(BaseModel):
    id: int
    competitor_id: int
    source_id: Optional[int] = None
    category: str
    claim_text: str
    claim_type: str
    status: str
    verified: bool
    verified_by: Optional[str] = None
    citation: Optional[str] = None
    internal_note: Optional[str] = None
    source_url: Optional[str] = None
    verbatim_quote: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
