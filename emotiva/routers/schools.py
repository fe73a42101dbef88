"""
School API endpoints.

Class and student management, student check-ins and emotion reports,
scoped to the calling school.
"""

from datetime import timedelta
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import success_response
from emotiva.context import ROLE_SCHOOL
from emotiva.config import Settings
from emotiva.dependencies import require_auth, require_role, get_school_service, get_settings
from emotiva.routers.checkin import parse_reference_day
from emotiva.schemas.school import ClassRequest, StudentRequest, StudentCheckInRequest
from emotiva.services.checkin.dates import local_today
from emotiva.services.school.school_service import SchoolService, format_class


router = APIRouter(prefix="/schools", tags=["Schools"])

require_school = require_role(ROLE_SCHOOL)


# =============================================================================
# Classes
# =============================================================================

@router.get("/classes")
async def list_classes(
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
):
    classes = await school_service.list_classes(user["_id"])
    return success_response({"classes": classes})


@router.post("/classes", status_code=201)
async def create_class(
    body: ClassRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
):
    school_class = await school_service.create_class(
        user["_id"], body.name, body.grade, body.description
    )
    return success_response(school_class)


@router.get("/classes/{class_id}")
async def get_class(
    class_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
):
    school_class = await school_service.get_class(class_id, user["_id"])
    return success_response(format_class(school_class))


@router.patch("/classes/{class_id}")
async def update_class(
    class_id: str,
    body: ClassRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
):
    school_class = await school_service.update_class(
        class_id, user["_id"], body.name, body.grade, body.description
    )
    return success_response(school_class)


@router.delete("/classes/{class_id}")
async def delete_class(
    class_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
):
    """Delete a class and its students."""
    await school_service.delete_class(class_id, user["_id"])
    return success_response(message="Class deleted")


# =============================================================================
# Students
# =============================================================================

@router.get("/classes/{class_id}/students")
async def list_students(
    class_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
):
    students = await school_service.list_students(class_id, user["_id"])
    return success_response({"students": students})


@router.post("/classes/{class_id}/students", status_code=201)
async def add_student(
    class_id: str,
    body: StudentRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
):
    student = await school_service.add_student(
        class_id, user["_id"], body.name, body.age, body.guardianName
    )
    return success_response(student)


@router.patch("/classes/{class_id}/students/{student_id}")
async def update_student(
    class_id: str,
    student_id: str,
    body: StudentRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
):
    student = await school_service.update_student(
        class_id, student_id, user["_id"], body.name, body.age, body.guardianName
    )
    return success_response(student)


@router.delete("/classes/{class_id}/students/{student_id}")
async def remove_student(
    class_id: str,
    student_id: str,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
):
    await school_service.remove_student(class_id, student_id, user["_id"])
    return success_response(message="Student removed")


# =============================================================================
# Student check-ins and reports
# =============================================================================

REPORT_DEFAULT_DAYS = 30


@router.post("/classes/{class_id}/students/{student_id}/checkins", status_code=201)
async def record_student_checkin(
    class_id: str,
    student_id: str,
    body: StudentCheckInRequest,
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
    app_settings: Annotated[Settings, Depends(get_settings)],
):
    """Record how a student felt on a day."""
    checkin = await school_service.record_student_checkin(
        class_id,
        student_id,
        user["_id"],
        emotion=body.emotion,
        intensity=body.intensity,
        day=body.date,
        note=body.note,
        today=local_today(app_settings.get_timezone())
    )
    return success_response(checkin)


@router.get("/reports")
async def get_emotion_report(
    user: Annotated[dict, Depends(require_auth)],
    _: Annotated[dict, Depends(require_school)],
    school_service: Annotated[SchoolService, Depends(get_school_service)],
    app_settings: Annotated[Settings, Depends(get_settings)],
    classId: Optional[str] = Query(default=None, description="Omit for all classes"),
    startDate: Optional[str] = Query(default=None, description="YYYY-MM-DD, default 30 days ago"),
    endDate: Optional[str] = Query(default=None, description="YYYY-MM-DD, default today"),
):
    """
    Emotion report for one class or all classes over a date range.
    """
    end = parse_reference_day(endDate) or local_today(app_settings.get_timezone())
    start = parse_reference_day(startDate) or end - timedelta(days=REPORT_DEFAULT_DAYS)

    report = await school_service.get_emotion_report(user["_id"], classId, start, end)
    return success_response(report)
