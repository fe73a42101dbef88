"""Profile services."""

from emotiva.services.profile.profile_service import ProfileService, format_profile

__all__ = ["ProfileService", "format_profile"]
