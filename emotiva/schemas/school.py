"""
Pydantic models for school request validation.
"""

from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Request Schemas
# =============================================================================

class ClassRequest(BaseModel):
    """POST /api/v1/schools/classes and PATCH /api/v1/schools/classes/{class_id}"""
    name: str
    grade: Optional[str] = None
    description: Optional[str] = None


class StudentRequest(BaseModel):
    """POST /api/v1/schools/classes/{class_id}/students"""
    name: str
    age: int
    guardianName: Optional[str] = None


class StudentCheckInRequest(BaseModel):
    """POST /api/v1/schools/classes/{class_id}/students/{student_id}/checkins"""
    emotion: str
    intensity: int = Field(..., ge=1, le=5)
    date: str = Field(..., description="YYYY-MM-DD, not in the future")
    note: Optional[str] = None
