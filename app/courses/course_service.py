import math

from fastapi.encoders import jsonable_encoder
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from app.courses.cache import CourseCache, listing_key
from app.courses.config import COURSE_CACHE_TTL_SECONDS, DEFAULT_PAGE_SIZE
from app.courses.database import require_course, serialize_mongo, with_course_totals

SORTABLE_FIELDS = {"created_at", "price", "title", "total_enrollments"}


def _split_tags(tags) -> list:
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return [t.strip() for t in tags if t.strip()]


def build_course_filter(query: dict) -> dict:
    """Mongo filter for published courses matching the listing query"""
    mongo_query = {"is_published": True}

    if query.get("search"):
        mongo_query["$text"] = {"$search": query["search"]}
    if query.get("category"):
        mongo_query["category"] = query["category"]

    tags = _split_tags(query.get("tags"))
    if tags:
        mongo_query["tags"] = {"$in": tags}

    price = {}
    if query.get("min_price") is not None:
        price["$gte"] = float(query["min_price"])
    if query.get("max_price") is not None:
        price["$lte"] = float(query["max_price"])
    if price:
        mongo_query["price"] = price

    return mongo_query


async def list_courses(db: AsyncIOMotorDatabase, cache: CourseCache, query: dict) -> dict:
    """
    Paginated course catalog.
    Results are cached per full query for a few minutes; the hierarchy
    editor clears the whole `courses:*` namespace on every change.
    """
    cache_key = listing_key(query)
    cached = await cache.get(cache_key)
    if cached:
        return {**cached, "cached": True}

    page = max(int(query.get("page") or 1), 1)
    limit = max(int(query.get("limit") or DEFAULT_PAGE_SIZE), 1)
    sort_by = query.get("sort_by") or "created_at"
    if sort_by not in SORTABLE_FIELDS:
        sort_by = "created_at"
    direction = ASCENDING if query.get("order") == "asc" else DESCENDING

    mongo_query = build_course_filter(query)
    cursor = (
        db.courses.find(mongo_query)
        .sort(sort_by, direction)
        .skip((page - 1) * limit)
        .limit(limit)
    )
    courses = await cursor.to_list(length=limit)
    total = await db.courses.count_documents(mongo_query)
    total_pages = math.ceil(total / limit)

    result = jsonable_encoder({
        "courses": [serialize_mongo(with_course_totals(c)) for c in courses],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_courses": total,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    })

    await cache.set(cache_key, result, COURSE_CACHE_TTL_SECONDS)
    return result


async def get_course_by_id(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    course = await require_course(db, course_id)
    return serialize_mongo(with_course_totals(course))
