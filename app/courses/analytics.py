import asyncio
import math
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from app.courses.config import ADMIN_PAGE_SIZE
from app.courses.database import serialize_many
from app.courses.errors import parse_object_id

# ==================== ENROLLMENTS ====================

async def get_course_enrollments(
    db: AsyncIOMotorDatabase, course_id: str, page: int = 1, limit: int = ADMIN_PAGE_SIZE
) -> dict:
    """Paginated enrollments of a course, newest first"""
    oid = parse_object_id(course_id, "course ID")
    page = max(page or 1, 1)
    limit = max(limit or ADMIN_PAGE_SIZE, 1)

    cursor = (
        db.enrollments.find({"course_id": oid})
        .sort("enrolled_at", DESCENDING)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    enrollments, total = await asyncio.gather(
        cursor.to_list(length=limit),
        db.enrollments.count_documents({"course_id": oid}),
    )

    return {
        "enrollments": serialize_many(enrollments),
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil(total / limit),
            "total_enrollments": total,
        },
    }

# ==================== ANALYTICS ====================

async def get_analytics(
    db: AsyncIOMotorDatabase,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> dict:
    """Platform overview, monthly enrollment trend and per-category course stats"""
    date_filter = {}
    if start_date:
        date_filter["$gte"] = start_date
    if end_date:
        date_filter["$lte"] = end_date
    match = {"enrolled_at": date_filter} if date_filter else {}

    enrollment_trends = await db.enrollments.aggregate([
        {"$match": match},
        {"$group": {
            "_id": {
                "year": {"$year": "$enrolled_at"},
                "month": {"$month": "$enrolled_at"},
            },
            "count": {"$sum": 1},
        }},
        {"$sort": {"_id.year": 1, "_id.month": 1}},
    ]).to_list(length=None)

    courses_by_category = await db.courses.aggregate([
        {"$group": {
            "_id": "$category",
            "count": {"$sum": 1},
            "avg_price": {"$avg": "$price"},
            "total_enrollments": {"$sum": "$total_enrollments"},
        }},
    ]).to_list(length=None)

    total_courses, total_enrollments, students = await asyncio.gather(
        db.courses.count_documents({}),
        db.enrollments.count_documents({}),
        db.enrollments.distinct("user_id"),
    )

    return {
        "overview": {
            "total_courses": total_courses,
            "total_enrollments": total_enrollments,
            "total_students": len(students),
        },
        "enrollment_trends": enrollment_trends,
        "courses_by_category": courses_by_category,
    }
