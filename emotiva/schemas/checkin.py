"""
Pydantic models for check-in request validation.
"""

from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Request Schemas
# =============================================================================

class CheckInRequest(BaseModel):
    """POST /api/v1/children/{child_id}/checkins"""
    mood: str = Field(..., description="happy, neutral or sad")
    sleptWell: bool
    adverseEvent: bool
    date: str = Field(..., description="YYYY-MM-DD, not in the future")
    note: Optional[str] = None
    intensity: Optional[int] = Field(None, ge=1, le=5, description="Legacy 1-5 scale")
