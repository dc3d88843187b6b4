"""
Competitor Intel - Auth Pydantic Schemas
"""

from typing import Optional
from pydantic import BaseModel


class LoginRequest(BaseModel):
    password: Optional[str] = None
