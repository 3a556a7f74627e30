"""
Course hierarchy store and editor.

A course embeds an ordered list of modules, each embedding an ordered list of
lessons. `order` is only a sort key: it need not be contiguous or unique.
Every edit rewrites the course's `modules` array in one document update, so
concurrent edits on the same course resolve last-write-wins.
"""

import logging
import re
from typing import Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.courses.cache import CourseCache, invalidate_course_listings
from app.courses.database import (
    find_by_id, new_id, require_course, serialize_mongo, utcnow, with_course_totals
)
from app.courses.errors import NotFound, parse_object_id

logger = logging.getLogger(__name__)

COURSE_FIELDS = (
    "title", "description", "instructor", "category", "tags",
    "price", "thumbnail", "is_published",
)

# ==================== HELPERS ====================

def normalize_youtube_url(url: str) -> str:
    """
    Convert any youtube link to embed format
    """
    # already embed
    if "embed/" in url:
        return url

    # watch?v=
    match = re.search(r"youtube\.com/watch\?.*v=([^&]+)", url)
    if match:
        return f"https://www.youtube.com/embed/{match.group(1)}"

    # youtu.be/
    match = re.search(r"youtu\.be/([^?]+)", url)
    if match:
        return f"https://www.youtube.com/embed/{match.group(1)}"

    return url

def _enum_value(value):
    return getattr(value, "value", value)

def next_order(items: List[dict]) -> int:
    """max(order) + 1, or 1 for an empty list"""
    return max((item.get("order", 0) for item in items), default=0) + 1

def apply_reorder(items: List[dict], assignments: Iterable[dict]) -> List[dict]:
    """
    Apply (id, order) pairs to matching items, then stable-sort by order.
    Ids that match nothing are ignored; untouched items keep their order.
    """
    by_id = {str(item["_id"]): item for item in items}
    for assignment in assignments:
        item = by_id.get(str(assignment["id"]))
        if item is not None:
            item["order"] = assignment["order"]
    return sorted(items, key=lambda item: item["order"])

def build_lesson(data: dict, order: Optional[int] = None) -> dict:
    return {
        "_id": new_id(),
        "title": data["title"],
        "video_url": normalize_youtube_url(data["video_url"]),
        "duration": data["duration"],
        "order": data.get("order") if data.get("order") is not None else order,
    }

def build_module(data: dict, order: Optional[int] = None) -> dict:
    lessons = []
    for lesson_data in data.get("lessons", []):
        lessons.append(build_lesson(lesson_data, next_order(lessons)))
    return {
        "_id": new_id(),
        "title": data["title"],
        "description": data.get("description"),
        "order": data.get("order") if data.get("order") is not None else order,
        "lessons": lessons,
    }

def _find_module(course: dict, module_id) -> dict:
    module = find_by_id(course.get("modules", []), parse_object_id(module_id, "module ID"))
    if module is None:
        raise NotFound("Module not found")
    return module

def _find_lesson(module: dict, lesson_id) -> dict:
    lesson = find_by_id(module.get("lessons", []), parse_object_id(lesson_id, "lesson ID"))
    if lesson is None:
        raise NotFound("Lesson not found")
    return lesson

async def _save_modules(db: AsyncIOMotorDatabase, cache: CourseCache, course: dict):
    result = await db.courses.update_one(
        {"_id": course["_id"]},
        {"$set": {"modules": course["modules"], "updated_at": utcnow()}},
    )
    if result.matched_count == 0:
        raise NotFound("Course not found")
    await invalidate_course_listings(cache)

# ==================== COURSE CRUD ====================

async def create_course(db: AsyncIOMotorDatabase, cache: CourseCache, payload: dict) -> dict:
    """Create a course with its initial modules and lessons"""
    modules = []
    for module_data in payload.get("modules", []):
        modules.append(build_module(module_data, next_order(modules)))

    now = utcnow()
    course = {field: _enum_value(payload.get(field)) for field in COURSE_FIELDS}
    course.update({
        "_id": new_id(),
        "tags": payload.get("tags") or [],
        "is_published": payload.get("is_published", True),
        "modules": modules,
        "batch": payload.get("batch") or {"number": 1, "start_date": now},
        "total_enrollments": 0,
        "created_at": now,
        "updated_at": now,
    })

    await db.courses.insert_one(course)
    await invalidate_course_listings(cache)
    logger.info("Course %s created", course["_id"])
    return serialize_mongo(with_course_totals(course))

async def update_course(
    db: AsyncIOMotorDatabase, cache: CourseCache, course_id: str, updates: dict
) -> dict:
    """Update catalog fields; the module tree is edited through the module/lesson operations"""
    oid = parse_object_id(course_id, "course ID")
    changes = {
        field: _enum_value(value)
        for field, value in updates.items()
        if field in COURSE_FIELDS and value is not None
    }
    changes["updated_at"] = utcnow()

    result = await db.courses.update_one({"_id": oid}, {"$set": changes})
    if result.matched_count == 0:
        raise NotFound("Course not found")

    await invalidate_course_listings(cache)
    course = await require_course(db, oid)
    return serialize_mongo(with_course_totals(course))

async def delete_course(db: AsyncIOMotorDatabase, cache: CourseCache, course_id: str) -> dict:
    """Delete a course and everything that references it"""
    oid = parse_object_id(course_id, "course ID")
    result = await db.courses.delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise NotFound("Course not found")

    await db.enrollments.delete_many({"course_id": oid})
    await db.assignments.delete_many({"course_id": oid})
    await db.quizzes.delete_many({"course_id": oid})

    await invalidate_course_listings(cache)
    logger.info("Course %s deleted", oid)
    return {"message": "Course deleted successfully"}

# ==================== MODULE EDITING ====================

async def add_module(
    db: AsyncIOMotorDatabase, cache: CourseCache, course_id: str, data: dict
) -> dict:
    """Append a module; no sort is performed at insert time"""
    course = await require_course(db, course_id)
    modules = course.setdefault("modules", [])
    module = build_module(data, next_order(modules))
    modules.append(module)

    await _save_modules(db, cache, course)
    logger.info("Module %s added to course %s", module["_id"], course["_id"])
    return serialize_mongo(module)

async def update_module(
    db: AsyncIOMotorDatabase, cache: CourseCache, course_id: str, module_id: str, data: dict
) -> dict:
    course = await require_course(db, course_id)
    module = _find_module(course, module_id)
    for field in ("title", "description", "order"):
        if data.get(field) is not None:
            module[field] = data[field]

    await _save_modules(db, cache, course)
    return serialize_mongo(module)

async def delete_module(
    db: AsyncIOMotorDatabase, cache: CourseCache, course_id: str, module_id: str
) -> dict:
    """
    Remove a module together with its lessons.
    Assignments and quizzes attached to the module are deleted with it.
    Completed-lesson records on enrollments are left as they are.
    """
    course = await require_course(db, course_id)
    module = _find_module(course, module_id)
    course["modules"] = [m for m in course["modules"] if m["_id"] != module["_id"]]

    await _save_modules(db, cache, course)

    scope = {"course_id": course["_id"], "module_id": module["_id"]}
    assignments = await db.assignments.delete_many(scope)
    quizzes = await db.quizzes.delete_many(scope)
    logger.info(
        "Module %s deleted from course %s (%d assignments, %d quizzes removed)",
        module["_id"], course["_id"], assignments.deleted_count, quizzes.deleted_count,
    )
    return {"message": "Module deleted successfully"}

async def reorder_modules(
    db: AsyncIOMotorDatabase, cache: CourseCache, course_id: str, assignments: List[dict]
) -> List[dict]:
    course = await require_course(db, course_id)
    course["modules"] = apply_reorder(course.get("modules", []), assignments)

    await _save_modules(db, cache, course)
    return serialize_mongo(course["modules"])

# ==================== LESSON EDITING ====================

async def add_lesson(
    db: AsyncIOMotorDatabase, cache: CourseCache, course_id: str, module_id: str, data: dict
) -> dict:
    course = await require_course(db, course_id)
    module = _find_module(course, module_id)
    lessons = module.setdefault("lessons", [])
    lesson = build_lesson(data, next_order(lessons))
    lessons.append(lesson)

    await _save_modules(db, cache, course)
    logger.info("Lesson %s added to module %s", lesson["_id"], module["_id"])
    return serialize_mongo(lesson)

async def update_lesson(
    db: AsyncIOMotorDatabase,
    cache: CourseCache,
    course_id: str,
    module_id: str,
    lesson_id: str,
    data: dict,
) -> dict:
    course = await require_course(db, course_id)
    lesson = _find_lesson(_find_module(course, module_id), lesson_id)
    for field in ("title", "duration", "order"):
        if data.get(field) is not None:
            lesson[field] = data[field]
    if data.get("video_url") is not None:
        lesson["video_url"] = normalize_youtube_url(data["video_url"])

    await _save_modules(db, cache, course)
    return serialize_mongo(lesson)

async def delete_lesson(
    db: AsyncIOMotorDatabase, cache: CourseCache, course_id: str, module_id: str, lesson_id: str
) -> dict:
    course = await require_course(db, course_id)
    module = _find_module(course, module_id)
    lesson = _find_lesson(module, lesson_id)
    module["lessons"] = [l for l in module["lessons"] if l["_id"] != lesson["_id"]]

    await _save_modules(db, cache, course)
    logger.info("Lesson %s deleted from module %s", lesson["_id"], module["_id"])
    return {"message": "Lesson deleted successfully"}

async def reorder_lessons(
    db: AsyncIOMotorDatabase,
    cache: CourseCache,
    course_id: str,
    module_id: str,
    assignments: List[dict],
) -> List[dict]:
    course = await require_course(db, course_id)
    module = _find_module(course, module_id)
    module["lessons"] = apply_reorder(module.get("lessons", []), assignments)

    await _save_modules(db, cache, course)
    return serialize_mongo(module["lessons"])
