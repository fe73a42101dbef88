"""
Emotiva collections.

Collection names used by the services, and the indexes the services
rely on (one check-in per child per day, one subscriber per email).
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)


PROFILES = "profiles"
CHILDREN = "children"
CHECKINS = "checkins"
NOTIFICATIONS = "notifications"
SHARED_REPORTS = "sharedReports"
PSYCHOLOGISTS = "psychologists"
CLASSES = "classes"
STUDENTS = "students"
STUDENT_CHECKINS = "studentCheckins"
SUBSCRIBERS = "subscribers"


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create the indexes the services depend on. Safe to run on every start."""
    # Older rows carry no chosen day; only dated rows are unique per day
    await db[CHECKINS].create_index(
        [("childId", ASCENDING), ("date", ASCENDING)],
        unique=True,
        partialFilterExpression={"date": {"$type": "string"}},
    )
    await db[CHECKINS].create_index([("childId", ASCENDING), ("createdAt", ASCENDING)])
    await db[CHECKINS].create_index([("childId", ASCENDING), ("date", DESCENDING), ("createdAt", DESCENDING)])
    await db[CHILDREN].create_index([("guardianId", ASCENDING), ("createdAt", ASCENDING)])
    await db[NOTIFICATIONS].create_index([("recipientId", ASCENDING), ("createdAt", DESCENDING)])
    await db[SHARED_REPORTS].create_index([("childId", ASCENDING), ("psychologistId", ASCENDING), ("status", ASCENDING)])
    await db[PSYCHOLOGISTS].create_index([("code", ASCENDING)], unique=True)
    await db[PSYCHOLOGISTS].create_index([("userId", ASCENDING)], unique=True)
    await db[CLASSES].create_index([("schoolId", ASCENDING), ("createdAt", DESCENDING)])
    await db[STUDENTS].create_index([("classId", ASCENDING), ("createdAt", DESCENDING)])
    await db[STUDENT_CHECKINS].create_index([("studentId", ASCENDING), ("date", ASCENDING)])
    await db[STUDENT_CHECKINS].create_index([("classId", ASCENDING)])
    await db[SUBSCRIBERS].create_index([("email", ASCENDING)], unique=True)
    await db[SUBSCRIBERS].create_index([("stripeCustomerId", ASCENDING)])
    logger.info("Database indexes ensured")
