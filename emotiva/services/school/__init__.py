"""School services."""

from emotiva.services.school.school_service import SchoolService

__all__ = ["SchoolService"]
