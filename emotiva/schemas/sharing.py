"""
Pydantic models for report sharing request validation.
"""

from pydantic import BaseModel, Field


# =============================================================================
# Request Schemas
# =============================================================================

class ShareRequest(BaseModel):
    """POST /api/v1/children/{child_id}/shares"""
    psychologistCode: str = Field(..., description="Public code, e.g. PSI-4K7Q2Z")


class InviteResponseRequest(BaseModel):
    """POST /api/v1/psychologists/invites/{share_id}/respond"""
    status: str = Field(..., description="accepted or declined")


class PsychologistRegisterRequest(BaseModel):
    """POST /api/v1/psychologists"""
    name: str
    specialty: str
    licenseNumber: str
