"""
Competitor Intel - Source Pydantic Schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class SourceCreate(BaseModel):
    competitor_id: Optional[int] = None
    url: Optional[str] = None
    source_type: Optional[str] = None


class SourceResponse(BaseModel):
    id: int
    competitor_id: int
    url: str
    source_type: str
    captured_at: Optional[datetime] = None

    class Config:
        from_attributes = True
