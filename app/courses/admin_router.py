from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional

from app.courses import hierarchy
from app.courses.analytics import get_analytics, get_course_enrollments
from app.courses.assessment import (
    create_assignment, create_quiz, get_assignment_submissions, get_quiz_results,
    grade_assignment
)
from app.courses.cache import CourseCache
from app.courses.config import ADMIN_PAGE_SIZE
from app.courses.dependencies import get_db, get_cache, require_admin
from app.courses.models import (
    AssignmentCreate, CourseCreate, CourseUpdate, GradePayload, LessonCreate,
    LessonUpdate, ModuleCreate, ModuleUpdate, QuizCreate, ReorderPayload
)

router = APIRouter(tags=["Admin"], dependencies=[Depends(require_admin)])

# ==================== COURSE CRUD ====================

@router.post("/courses", status_code=201)
async def create_course_endpoint(
    payload: CourseCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    return await hierarchy.create_course(db, cache, payload.dict())


@router.put("/courses/{course_id}")
async def update_course_endpoint(
    course_id: str,
    payload: CourseUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    return await hierarchy.update_course(db, cache, course_id, payload.dict(exclude_unset=True))


@router.delete("/courses/{course_id}")
async def delete_course_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    return await hierarchy.delete_course(db, cache, course_id)


@router.get("/courses/{course_id}/enrollments")
async def course_enrollments_endpoint(
    course_id: str,
    page: int = 1,
    limit: int = ADMIN_PAGE_SIZE,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await get_course_enrollments(db, course_id, page, limit)

# ==================== MODULES ====================

@router.post("/courses/{course_id}/modules", status_code=201)
async def add_module_endpoint(
    course_id: str,
    payload: ModuleCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    return await hierarchy.add_module(db, cache, course_id, payload.dict())


# registered before /modules/{module_id} so "reorder" is not read as an id
@router.put("/courses/{course_id}/modules/reorder")
async def reorder_modules_endpoint(
    course_id: str,
    payload: ReorderPayload,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    items = [item.dict() for item in payload.items]
    return await hierarchy.reorder_modules(db, cache, course_id, items)


@router.put("/courses/{course_id}/modules/{module_id}")
async def update_module_endpoint(
    course_id: str,
    module_id: str,
    payload: ModuleUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    return await hierarchy.update_module(db, cache, course_id, module_id, payload.dict())


@router.delete("/courses/{course_id}/modules/{module_id}")
async def delete_module_endpoint(
    course_id: str,
    module_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    return await hierarchy.delete_module(db, cache, course_id, module_id)

# ==================== LESSONS ====================

@router.post("/courses/{course_id}/modules/{module_id}/lessons", status_code=201)
async def add_lesson_endpoint(
    course_id: str,
    module_id: str,
    payload: LessonCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    return await hierarchy.add_lesson(db, cache, course_id, module_id, payload.dict())


@router.put("/courses/{course_id}/modules/{module_id}/lessons/reorder")
async def reorder_lessons_endpoint(
    course_id: str,
    module_id: str,
    payload: ReorderPayload,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    items = [item.dict() for item in payload.items]
    return await hierarchy.reorder_lessons(db, cache, course_id, module_id, items)


@router.put("/courses/{course_id}/modules/{module_id}/lessons/{lesson_id}")
async def update_lesson_endpoint(
    course_id: str,
    module_id: str,
    lesson_id: str,
    payload: LessonUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    return await hierarchy.update_lesson(
        db, cache, course_id, module_id, lesson_id, payload.dict()
    )


@router.delete("/courses/{course_id}/modules/{module_id}/lessons/{lesson_id}")
async def delete_lesson_endpoint(
    course_id: str,
    module_id: str,
    lesson_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    cache: CourseCache = Depends(get_cache)
):
    return await hierarchy.delete_lesson(db, cache, course_id, module_id, lesson_id)

# ==================== ASSIGNMENTS ====================

@router.post("/assignments", status_code=201)
async def create_assignment_endpoint(
    payload: AssignmentCreate,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await create_assignment(db, payload.dict())


@router.get("/assignments/{assignment_id}/submissions")
async def assignment_submissions_endpoint(
    assignment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await get_assignment_submissions(db, assignment_id)


@router.put("/assignments/{assignment_id}/submissions/{submission_id}/grade")
async def grade_assignment_endpoint(
    assignment_id: str,
    submission_id: str,
    payload: GradePayload,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await grade_assignment(
        db, assignment_id, submission_id, payload.grade, payload.feedback
    )

# ==================== QUIZZES ====================

@router.post("/quizzes", status_code=201)
async def create_quiz_endpoint(
    payload: QuizCreate,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await create_quiz(db, payload.dict())


@router.get("/quizzes/{quiz_id}/results")
async def quiz_results_endpoint(
    quiz_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await get_quiz_results(db, quiz_id)

# ==================== ANALYTICS ====================

@router.get("/analytics")
async def analytics_endpoint(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await get_analytics(db, start_date, end_date)
