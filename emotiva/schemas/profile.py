"""
Pydantic models for profile request validation.
"""

from pydantic import BaseModel, Field


class ProfileRequest(BaseModel):
    """PUT /api/v1/profile"""
    name: str
    role: str = Field(..., description="guardian, school or psychologist")
