from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import List, Optional
import logging
import math
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, TEXT

from app.courses.errors import NotFound, parse_object_id

logger = logging.getLogger(__name__)

# ==================== SERIALIZATION ====================

def serialize_mongo(doc):
    """Recursively turn ObjectIds into strings so documents are JSON-safe"""
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, dict):
        return {k: serialize_mongo(v) for k, v in doc.items()}
    if isinstance(doc, list):
        return [serialize_mongo(v) for v in doc]
    return doc

def serialize_many(docs: List[dict]) -> List[dict]:
    return [serialize_mongo(doc) for doc in docs]

def new_id() -> ObjectId:
    return ObjectId()

def utcnow() -> datetime:
    return datetime.utcnow()

# ==================== DERIVED COURSE TOTALS ====================

def total_lessons(course: dict) -> int:
    """Lesson count across all modules of the live hierarchy"""
    return sum(len(m.get("lessons", [])) for m in course.get("modules", []))

def total_duration(course: dict) -> int:
    return sum(
        lesson.get("duration", 0)
        for m in course.get("modules", [])
        for lesson in m.get("lessons", [])
    )

def with_course_totals(course: dict) -> dict:
    course["total_lessons"] = total_lessons(course)
    course["total_duration"] = total_duration(course)
    return course

# ==================== LOOKUPS ====================

async def get_course(db: AsyncIOMotorDatabase, course_id) -> Optional[dict]:
    """Get course by ID"""
    return await db.courses.find_one({"_id": parse_object_id(course_id, "course ID")})

async def require_course(db: AsyncIOMotorDatabase, course_id) -> dict:
    course = await get_course(db, course_id)
    if not course:
        raise NotFound("Course not found")
    return course

async def require_assignment(db: AsyncIOMotorDatabase, assignment_id) -> dict:
    assignment = await db.assignments.find_one(
        {"_id": parse_object_id(assignment_id, "assignment ID")}
    )
    if not assignment:
        raise NotFound("Assignment not found")
    return assignment

async def require_quiz(db: AsyncIOMotorDatabase, quiz_id) -> dict:
    quiz = await db.quizzes.find_one({"_id": parse_object_id(quiz_id, "quiz ID")})
    if not quiz:
        raise NotFound("Quiz not found")
    return quiz

def find_by_id(items: List[dict], item_id: ObjectId) -> Optional[dict]:
    for item in items:
        if item.get("_id") == item_id:
            return item
    return None

# ==================== DATABASE INDEXES ====================

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes for the course system"""
    # Courses
    await db.courses.create_index([("title", TEXT), ("description", TEXT)])
    await db.courses.create_index([("category", ASCENDING), ("price", ASCENDING)])
    await db.courses.create_index([("created_at", DESCENDING)])

    # Enrollments: one per (user, course)
    await db.enrollments.create_index(
        [("user_id", ASCENDING), ("course_id", ASCENDING)], unique=True
    )

    # Assessments
    await db.assignments.create_index([("course_id", ASCENDING), ("module_id", ASCENDING)])
    await db.assignments.create_index("submissions.user_id")
    await db.quizzes.create_index([("course_id", ASCENDING), ("module_id", ASCENDING)])
    await db.quizzes.create_index("attempts.user_id")

    logger.info("Course system indexes created")

def percentage(part: int, whole: int) -> int:
    """Integer percentage rounded half up; 0 when there is nothing to divide by"""
    if whole <= 0:
        return 0
    return math.floor(part * 100 / whole + 0.5)
