from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.courses.assessment import get_quiz_for_student, submit_assignment, submit_quiz
from app.courses.dependencies import get_db, require_student
from app.courses.models import (
    ProgressResponse, ProgressUpdate, QuizResultResponse, QuizSubmit, SubmissionCreate
)
from app.courses.progress import (
    enroll_course, get_enrollment_details, get_student_dashboard, mark_lesson_complete
)

router = APIRouter(tags=["Student"])

# ==================== ENROLLMENT ====================

@router.get("/dashboard")
async def dashboard_endpoint(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(require_student)
):
    """Get all enrolled courses for user"""
    return await get_student_dashboard(db, user_id)


@router.post("/enroll/{course_id}", status_code=201)
async def enroll_endpoint(
    course_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(require_student)
):
    """Enroll in course (409 when already enrolled)"""
    enrollment = await enroll_course(db, course_id, user_id)
    return {"success": True, "message": "Enrolled successfully", "enrollment": enrollment}


@router.get("/enrollments/{enrollment_id}")
async def enrollment_details_endpoint(
    enrollment_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(require_student)
):
    return await get_enrollment_details(db, enrollment_id, user_id)

# ==================== PROGRESS ====================

@router.post("/progress", response_model=ProgressResponse)
async def mark_lesson_complete_endpoint(
    payload: ProgressUpdate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(require_student)
):
    return await mark_lesson_complete(
        db, payload.enrollment_id, payload.module_id, payload.lesson_id, user_id
    )

# ==================== ASSESSMENTS ====================

@router.post("/assignments/{assignment_id}/submit")
async def submit_assignment_endpoint(
    assignment_id: str,
    payload: SubmissionCreate,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(require_student)
):
    return await submit_assignment(db, payload.dict(), assignment_id, user_id)


@router.get("/quizzes/{quiz_id}")
async def get_quiz_endpoint(
    quiz_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(require_student)
):
    """Quiz questions without answer keys"""
    return await get_quiz_for_student(db, quiz_id, user_id)


@router.post("/quizzes/{quiz_id}/submit", response_model=QuizResultResponse)
async def submit_quiz_endpoint(
    quiz_id: str,
    payload: QuizSubmit,
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(require_student)
):
    return await submit_quiz(db, quiz_id, payload.answers, user_id)
