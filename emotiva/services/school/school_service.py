"""
School service.

Schools manage their classes and the students enrolled in each class,
record student check-ins and read emotion reports over a date range.
Every operation is scoped to the school identity that owns the class.
"""

import logging
from collections import Counter
from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import ValidationException, NotFoundException
from emotiva.database import CLASSES, STUDENTS, STUDENT_CHECKINS
from emotiva.services.checkin.dates import parse_day, format_day
from emotiva.services.object_ids import parse_object_id, isoformat

logger = logging.getLogger(__name__)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def format_class(school_class: Dict[str, Any], student_count: Optional[int] = None) -> Dict[str, Any]:
    """Format class document for API response."""
    formatted = {
        "id": str(school_class["_id"]),
        "schoolId": school_class["schoolId"],
        "name": school_class["name"],
        "grade": school_class.get("grade"),
        "description": school_class.get("description"),
        "createdAt": isoformat(school_class.get("createdAt")),
    }
    if student_count is not None:
        formatted["studentCount"] = student_count
    return formatted


def format_student(student: Dict[str, Any]) -> Dict[str, Any]:
    """Format student document for API response."""
    return {
        "id": str(student["_id"]),
        "classId": str(student["classId"]),
        "name": student["name"],
        "age": student["age"],
        "guardianName": student.get("guardianName"),
        "createdAt": isoformat(student.get("createdAt")),
    }


def format_student_checkin(checkin: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(checkin["_id"]),
        "studentId": str(checkin["studentId"]),
        "classId": str(checkin["classId"]),
        "emotion": checkin["emotion"],
        "intensity": checkin["intensity"],
        "date": checkin["date"],
        "note": checkin.get("note"),
        "createdAt": isoformat(checkin.get("createdAt")),
    }


# =============================================================================
# Emotion reports
# =============================================================================

NEGATIVE_EMOTIONS = {"sad", "anxious", "angry"}
ALERT_INTENSITY = 4


def percentage(count: int, total: int) -> int:
    """Whole percentage, halves rounded up."""
    if not total:
        return 0
    return (200 * count + total) // (2 * total)


def is_emotion_alert(checkin: Dict[str, Any]) -> bool:
    """A negative emotion felt at high intensity."""
    return (
        (checkin.get("intensity") or 0) >= ALERT_INTENSITY
        and (checkin.get("emotion") or "").lower() in NEGATIVE_EMOTIONS
    )


def emotion_breakdown(checkins: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Count and share of each emotion, most frequent first.

    Ties are ordered by emotion name so the result is stable.
    """
    counts = Counter(c["emotion"] for c in checkins)
    total = len(checkins)

    breakdown = [
        {"emotion": emotion, "count": count, "percentage": percentage(count, total)}
        for emotion, count in counts.items()
    ]
    breakdown.sort(key=lambda item: (-item["count"], item["emotion"]))
    return breakdown


def daily_counts(checkins: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Check-ins per calendar day, oldest day first."""
    counts = Counter(c["date"] for c in checkins)
    return [{"date": day, "checkins": counts[day]} for day in sorted(counts)]


class SchoolService:
    """
    Class and student management for school accounts.
    """

    MIN_AGE = 1
    MAX_AGE = 18
    MAX_NAME_LENGTH = 100

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db
        self._classes_collection = db[CLASSES]
        self._students_collection = db[STUDENTS]
        self._student_checkins_collection = db[STUDENT_CHECKINS]

    # ─────────────────────────────────────────────────────────────────
    # Classes
    # ─────────────────────────────────────────────────────────────────

    def _validate_name(self, name: Optional[str], label: str) -> str:
        if not name or not name.strip():
            raise ValidationException(message=f"{label} name is required")
        if len(name.strip()) > self.MAX_NAME_LENGTH:
            raise ValidationException(
                message=f"{label} name cannot exceed {self.MAX_NAME_LENGTH} characters"
            )
        return name.strip()

    async def create_class(
        self,
        school_id: str,
        name: str,
        grade: Optional[str] = None,
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        class_doc = {
            "schoolId": school_id,
            "name": self._validate_name(name, "Class"),
            "grade": _blank_to_none(grade),
            "description": _blank_to_none(description),
            "createdAt": datetime.now(timezone.utc),
        }

        result = await self._classes_collection.insert_one(class_doc)
        class_doc["_id"] = result.inserted_id

        logger.info(f"Created class {result.inserted_id} for school {school_id}")
        return format_class(class_doc, student_count=0)

    async def list_classes(self, school_id: str) -> List[Dict[str, Any]]:
        """
        List a school's classes, newest first, with their student counts.
        """
        cursor = self._classes_collection.find({"schoolId": school_id})
        cursor = cursor.sort("createdAt", -1)
        classes = await cursor.to_list(length=None)

        formatted = []
        for school_class in classes:
            count = await self._students_collection.count_documents(
                {"classId": school_class["_id"]}
            )
            formatted.append(format_class(school_class, student_count=count))

        return formatted

    async def get_class(self, class_id: str, school_id: str) -> Dict[str, Any]:
        """
        Get a class owned by the school.

        Raises:
            NotFoundException: Unknown class or owned by another school
        """
        oid = parse_object_id(class_id)
        school_class = None
        if oid is not None:
            school_class = await self._classes_collection.find_one({
                "_id": oid,
                "schoolId": school_id
            })

        if not school_class:
            raise NotFoundException(
                message="Class not found",
                code="CLASS_NOT_FOUND"
            )

        return school_class

    async def update_class(
        self,
        class_id: str,
        school_id: str,
        name: str,
        grade: Optional[str] = None,
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        updates = {
            "name": self._validate_name(name, "Class"),
            "grade": _blank_to_none(grade),
            "description": _blank_to_none(description),
        }
        school_class = await self.get_class(class_id, school_id)

        await self._classes_collection.update_one(
            {"_id": school_class["_id"]},
            {"$set": updates}
        )

        logger.info(f"Updated class {class_id}")
        school_class.update(updates)
        return format_class(school_class)

    async def delete_class(self, class_id: str, school_id: str) -> None:
        """Delete a class, its students and their check-ins."""
        school_class = await self.get_class(class_id, school_id)

        await self._student_checkins_collection.delete_many({"classId": school_class["_id"]})
        await self._students_collection.delete_many({"classId": school_class["_id"]})
        await self._classes_collection.delete_one({"_id": school_class["_id"]})

        logger.info(f"Deleted class {class_id} for school {school_id}")

    # ─────────────────────────────────────────────────────────────────
    # Students
    # ─────────────────────────────────────────────────────────────────

    def _validate_age(self, age: Any) -> int:
        if not isinstance(age, int) or isinstance(age, bool):
            raise ValidationException(message="Age must be a number")
        if age < self.MIN_AGE or age > self.MAX_AGE:
            raise ValidationException(
                message=f"Age must be between {self.MIN_AGE} and {self.MAX_AGE}"
            )
        return age

    async def add_student(
        self,
        class_id: str,
        school_id: str,
        name: str,
        age: int,
        guardian_name: Optional[str] = None
    ) -> Dict[str, Any]:
        student_doc = {
            "name": self._validate_name(name, "Student"),
            "age": self._validate_age(age),
            "guardianName": _blank_to_none(guardian_name),
            "createdAt": datetime.now(timezone.utc),
        }
        school_class = await self.get_class(class_id, school_id)
        student_doc["classId"] = school_class["_id"]

        result = await self._students_collection.insert_one(student_doc)
        student_doc["_id"] = result.inserted_id

        logger.info(f"Added student {result.inserted_id} to class {class_id}")
        return format_student(student_doc)

    async def list_students(self, class_id: str, school_id: str) -> List[Dict[str, Any]]:
        """List students of an owned class, newest first."""
        school_class = await self.get_class(class_id, school_id)

        cursor = self._students_collection.find({"classId": school_class["_id"]})
        cursor = cursor.sort("createdAt", -1)

        students = await cursor.to_list(length=None)
        return [format_student(s) for s in students]

    async def _get_student(self, class_oid, student_id: str) -> Dict[str, Any]:
        oid = parse_object_id(student_id)
        student = None
        if oid is not None:
            student = await self._students_collection.find_one({
                "_id": oid,
                "classId": class_oid
            })

        if not student:
            raise NotFoundException(
                message="Student not found",
                code="STUDENT_NOT_FOUND"
            )
        return student

    async def update_student(
        self,
        class_id: str,
        student_id: str,
        school_id: str,
        name: str,
        age: int,
        guardian_name: Optional[str] = None
    ) -> Dict[str, Any]:
        updates = {
            "name": self._validate_name(name, "Student"),
            "age": self._validate_age(age),
            "guardianName": _blank_to_none(guardian_name),
        }
        school_class = await self.get_class(class_id, school_id)
        student = await self._get_student(school_class["_id"], student_id)

        await self._students_collection.update_one(
            {"_id": student["_id"]},
            {"$set": updates}
        )

        logger.info(f"Updated student {student_id}")
        student.update(updates)
        return format_student(student)

    async def remove_student(self, class_id: str, student_id: str, school_id: str) -> None:
        school_class = await self.get_class(class_id, school_id)
        student = await self._get_student(school_class["_id"], student_id)

        await self._student_checkins_collection.delete_many({"studentId": student["_id"]})
        await self._students_collection.delete_one({"_id": student["_id"]})
        logger.info(f"Removed student {student_id} from class {class_id}")

    # ─────────────────────────────────────────────────────────────────
    # Student check-ins and reports
    # ─────────────────────────────────────────────────────────────────

    MIN_INTENSITY = 1
    MAX_INTENSITY = 5
    MAX_EMOTION_LENGTH = 40
    MAX_NOTE_LENGTH = 500

    def _validate_student_checkin(
        self,
        emotion: Optional[str],
        intensity: Any,
        day: Optional[str],
        today: Optional[date]
    ) -> Dict[str, Any]:
        emotion = (emotion or "").strip().lower()
        if not emotion:
            raise ValidationException(message="Emotion is required")
        if len(emotion) > self.MAX_EMOTION_LENGTH:
            raise ValidationException(
                message=f"Emotion cannot exceed {self.MAX_EMOTION_LENGTH} characters"
            )

        if not isinstance(intensity, int) or isinstance(intensity, bool):
            raise ValidationException(message="Intensity must be a number")
        if intensity < self.MIN_INTENSITY or intensity > self.MAX_INTENSITY:
            raise ValidationException(
                message=f"Intensity must be between {self.MIN_INTENSITY} and {self.MAX_INTENSITY}"
            )

        parsed = parse_day(day)
        if parsed is None:
            raise ValidationException(message="Field 'date' must be in YYYY-MM-DD format")
        if today is not None and parsed > today:
            raise ValidationException(message="Check-in date cannot be in the future")

        return {"emotion": emotion, "intensity": intensity, "date": format_day(parsed)}

    async def record_student_checkin(
        self,
        class_id: str,
        student_id: str,
        school_id: str,
        emotion: str,
        intensity: int,
        day: str,
        note: Optional[str] = None,
        today: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Record how a student felt on a day.

        Args:
            emotion: Free-form emotion label, stored lower-cased
            intensity: 1 (mild) to 5 (strong)
            day: YYYY-MM-DD, not after today when today is given
            today: Current calendar day in the app timezone

        Raises:
            ValidationException: Bad emotion, intensity, date or note
            NotFoundException: Class or student not owned by the school
        """
        checkin_doc = self._validate_student_checkin(emotion, intensity, day, today)

        note = _blank_to_none(note)
        if note and len(note) > self.MAX_NOTE_LENGTH:
            raise ValidationException(
                message=f"Note cannot exceed {self.MAX_NOTE_LENGTH} characters"
            )

        school_class = await self.get_class(class_id, school_id)
        student = await self._get_student(school_class["_id"], student_id)

        checkin_doc.update({
            "studentId": student["_id"],
            "classId": school_class["_id"],
            "schoolId": school_id,
            "note": note,
            "createdAt": datetime.now(timezone.utc),
        })

        result = await self._student_checkins_collection.insert_one(checkin_doc)
        checkin_doc["_id"] = result.inserted_id

        logger.info(f"Recorded check-in for student {student_id} on {checkin_doc['date']}")
        return format_student_checkin(checkin_doc)

    async def get_emotion_report(
        self,
        school_id: str,
        class_id: Optional[str],
        start: date,
        end: date
    ) -> Dict[str, Any]:
        """
        Emotion report over the student check-ins of a date range.

        Args:
            school_id: Owning school identity
            class_id: One owned class, or None for all of the school's classes
            start: First day (inclusive)
            end: Last day (inclusive)

        Returns:
            dict with keys:
                - totalCheckins / totalStudents
                - activeAlerts: negative emotions at intensity 4 or more
                - emotions: count and percentage per emotion
                - daily: check-ins per day
        """
        if start > end:
            raise ValidationException(message="Start date must not be after end date")

        if class_id:
            school_class = await self.get_class(class_id, school_id)
            class_ids = [school_class["_id"]]
        else:
            cursor = self._classes_collection.find({"schoolId": school_id}, {"_id": 1})
            class_ids = [c["_id"] for c in await cursor.to_list(length=None)]

        student_ids = []
        if class_ids:
            cursor = self._students_collection.find({"classId": {"$in": class_ids}}, {"_id": 1})
            student_ids = [s["_id"] for s in await cursor.to_list(length=None)]

        checkins = []
        if student_ids:
            cursor = self._student_checkins_collection.find({
                "studentId": {"$in": student_ids},
                "date": {"$gte": format_day(start), "$lte": format_day(end)},
            })
            checkins = await cursor.to_list(length=None)

        logger.debug(
            f"Emotion report for school {school_id}: {len(checkins)} check-ins, "
            f"{len(student_ids)} students"
        )

        return {
            "classId": class_id,
            "startDate": format_day(start),
            "endDate": format_day(end),
            "totalCheckins": len(checkins),
            "totalStudents": len(student_ids),
            "activeAlerts": sum(1 for c in checkins if is_emotion_alert(c)),
            "emotions": emotion_breakdown(checkins),
            "daily": daily_counts(checkins),
        }

    # ─────────────────────────────────────────────────────────────────
    # Dashboard
    # ─────────────────────────────────────────────────────────────────

    async def get_summary(self, school_id: str) -> Dict[str, int]:
        """
        Class and student totals for the school dashboard.

        Returns:
            dict with classCount and studentCount
        """
        cursor = self._classes_collection.find({"schoolId": school_id}, {"_id": 1})
        classes = await cursor.to_list(length=None)
        class_ids = [c["_id"] for c in classes]

        student_count = 0
        if class_ids:
            student_count = await self._students_collection.count_documents(
                {"classId": {"$in": class_ids}}
            )

        return {
            "classCount": len(class_ids),
            "studentCount": student_count,
        }
