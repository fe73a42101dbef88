"""
Emotiva collection names and index setup.
"""

from emotiva.database.collections import (
    PROFILES,
    CHILDREN,
    CHECKINS,
    NOTIFICATIONS,
    SHARED_REPORTS,
    PSYCHOLOGISTS,
    CLASSES,
    STUDENTS,
    STUDENT_CHECKINS,
    SUBSCRIBERS,
    ensure_indexes,
)

__all__ = [
    "PROFILES",
    "CHILDREN",
    "CHECKINS",
    "NOTIFICATIONS",
    "SHARED_REPORTS",
    "PSYCHOLOGISTS",
    "CLASSES",
    "STUDENTS",
    "STUDENT_CHECKINS",
    "SUBSCRIBERS",
    "ensure_indexes",
]
