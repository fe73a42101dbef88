"""
Pydantic models for child management request validation.
"""

from typing import List
from pydantic import BaseModel, Field


# =============================================================================
# Request Schemas
# =============================================================================

class ChildInput(BaseModel):
    """One child in a registration batch."""
    name: str
    age: int


class CreateChildrenRequest(BaseModel):
    """POST /api/v1/children"""
    children: List[ChildInput] = Field(..., min_length=1)


class UpdateChildRequest(BaseModel):
    """PATCH /api/v1/children/{child_id}"""
    name: str
    age: int
