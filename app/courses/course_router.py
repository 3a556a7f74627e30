from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional

from app.courses.cache import CourseCache
from app.courses.course_service import list_courses, get_course_by_id
from app.courses.dependencies import get_db, get_cache
from app.courses.models import CourseCategory

router = APIRouter(tags=["Courses"])

# ==================== COURSE CATALOG ====================

@router.get("")
async def list_courses_endpoint(
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    category: Optional[CourseCategory] = None,
    tags: Optional[str] = None,
    sort_by: str = "created_at",
    order: str = "desc",
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    """List published courses with filters (cached)"""
    query = {
        "page": page,
        "limit": limit,
        "search": search,
        "category": category.value if category else None,
        "tags": tags,
        "sort_by": sort_by,
        "order": order,
        "min_price": min_price,
        "max_price": max_price,
    }
    return await list_courses(db, cache, query)


@router.get("/{course_id}")
async def get_course_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Get course with its module/lesson tree and derived totals"""
    return await get_course_by_id(db, course_id)
