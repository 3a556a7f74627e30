"""
Enrollment and lesson-progress tracking.

Progress is always derived from the live course hierarchy at the moment of the
call: adding lessons can pull a finished course back under 100, and completions
of lessons that were later deleted still count, so progress can exceed 100.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.courses.database import (
    new_id, percentage, require_course, serialize_mongo, total_lessons, utcnow,
    with_course_totals,
)
from app.courses.errors import Conflict, NotFound, parse_object_id

logger = logging.getLogger(__name__)


def compute_progress(completed_count: int, lesson_count: int) -> int:
    return percentage(completed_count, lesson_count)


# ==================== ENROLLMENT ====================

async def enroll_course(db: AsyncIOMotorDatabase, course_id: str, user_id: str) -> dict:
    """Enroll user in course; a second enrollment for the same pair is a Conflict"""
    course = await require_course(db, course_id)

    existing = await db.enrollments.find_one({"user_id": user_id, "course_id": course["_id"]})
    if existing:
        raise Conflict("Already enrolled in this course")

    now = utcnow()
    enrollment = {
        "_id": new_id(),
        "user_id": user_id,
        "course_id": course["_id"],
        "progress": 0,
        "completed_lessons": [],
        "enrolled_at": now,
        "last_accessed_at": now,
    }
    try:
        await db.enrollments.insert_one(enrollment)
    except DuplicateKeyError:
        raise Conflict("Already enrolled in this course")

    await db.courses.update_one({"_id": course["_id"]}, {"$inc": {"total_enrollments": 1}})
    logger.info("User %s enrolled in course %s", user_id, course["_id"])
    return serialize_mongo(enrollment)


async def get_student_dashboard(db: AsyncIOMotorDatabase, user_id: str) -> dict:
    """All enrollments of a user, newest first, with a course summary"""
    cursor = db.enrollments.find({"user_id": user_id}).sort("enrolled_at", DESCENDING)
    enrollments = await cursor.to_list(length=None)

    result = []
    for enr in enrollments:
        course = await db.courses.find_one({"_id": enr["course_id"]})
        if course:
            enr["course"] = {
                "_id": course["_id"],
                "title": course.get("title"),
                "thumbnail": course.get("thumbnail"),
                "instructor": course.get("instructor"),
                "category": course.get("category"),
                "total_duration": with_course_totals(course)["total_duration"],
            }
        result.append(serialize_mongo(enr))

    return {"enrollments": result, "total_courses": len(result)}


async def _require_own_enrollment(db: AsyncIOMotorDatabase, enrollment_id: str, user_id: str) -> dict:
    # Someone else's enrollment is reported exactly like a missing one
    enrollment = await db.enrollments.find_one({
        "_id": parse_object_id(enrollment_id, "enrollment ID"),
        "user_id": user_id,
    })
    if not enrollment:
        raise NotFound("Enrollment not found")
    return enrollment


async def get_enrollment_details(db: AsyncIOMotorDatabase, enrollment_id: str, user_id: str) -> dict:
    enrollment = await _require_own_enrollment(db, enrollment_id, user_id)

    now = utcnow()
    await db.enrollments.update_one(
        {"_id": enrollment["_id"]}, {"$set": {"last_accessed_at": now}}
    )
    enrollment["last_accessed_at"] = now

    course = await db.courses.find_one({"_id": enrollment["course_id"]})
    enrollment["course"] = with_course_totals(course) if course else None
    return serialize_mongo(enrollment)

# ==================== PROGRESS ====================

async def mark_lesson_complete(
    db: AsyncIOMotorDatabase,
    enrollment_id: str,
    module_id: str,
    lesson_id: str,
    user_id: str,
) -> dict:
    """
    Record a lesson completion and recompute progress.

    The completion is pushed atomically and only when the pair is not stored
    yet, so concurrent marks of different lessons all land and re-marking a
    completed lesson appends nothing. Progress is still recomputed against the
    current hierarchy and stored if it moved.

    Returns:
        {"progress": int, "completed_lessons": int}
    """
    enrollment = await _require_own_enrollment(db, enrollment_id, user_id)
    module_oid = parse_object_id(module_id, "module ID")
    lesson_oid = parse_object_id(lesson_id, "lesson ID")

    course = await db.courses.find_one({"_id": enrollment["course_id"]})
    if not course:
        raise NotFound("Course not found")

    now = utcnow()
    pair = {"module_id": module_oid, "lesson_id": lesson_oid}
    updated = await db.enrollments.find_one_and_update(
        {
            "_id": enrollment["_id"],
            "$nor": [{"completed_lessons": {"$elemMatch": pair}}],
        },
        {
            "$push": {"completed_lessons": {**pair, "completed_at": now}},
            "$set": {"last_accessed_at": now},
        },
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        # already completed
        updated = await db.enrollments.find_one({"_id": enrollment["_id"]})
        if not updated:
            raise NotFound("Enrollment not found")

    completed_count = len(updated.get("completed_lessons", []))
    progress = compute_progress(completed_count, total_lessons(course))
    if progress != updated.get("progress"):
        # only the caller that saw the latest array length may store progress
        await db.enrollments.update_one(
            {"_id": enrollment["_id"], "completed_lessons": {"$size": completed_count}},
            {"$set": {"progress": progress}},
        )

    return {"progress": progress, "completed_lessons": completed_count}
