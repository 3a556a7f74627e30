"""
Assignments and quizzes.

- One live submission per (assignment, user): resubmitting overwrites type,
  content and timestamp in place and keeps any earlier grade and feedback.
- Quiz attempts are append-only; every submit is scored and stored.
"""

import logging
from typing import List, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.courses.config import QUIZ_PASS_MARK
from app.courses.database import (
    find_by_id, new_id, percentage, require_assignment, require_course, require_quiz,
    serialize_mongo, utcnow,
)
from app.courses.errors import InvalidInput, NotFound, parse_object_id

logger = logging.getLogger(__name__)


def _enum_value(value):
    return getattr(value, "value", value)

# ==================== SCORING ====================

def score_answers(questions: Sequence[dict], answers: Sequence[int]) -> dict:
    """
    Compare answers to questions positionally.
    Missing or extra answers never raise; a missing answer is simply wrong.
    """
    correct = 0
    for index, question in enumerate(questions):
        if index < len(answers) and question["correct_answer"] == answers[index]:
            correct += 1

    return {
        "score": percentage(correct, len(questions)),
        "correct_answers": correct,
        "total_questions": len(questions),
    }


def get_user_attempts(quiz: dict, user_id: str) -> List[dict]:
    return [a for a in quiz.get("attempts", []) if a["user_id"] == user_id]


def get_best_attempt(quiz: dict, user_id: str) -> Optional[dict]:
    """Highest score; the earliest attempt wins a tie"""
    best = None
    for attempt in get_user_attempts(quiz, user_id):
        if best is None or attempt["score"] > best["score"]:
            best = attempt
    return best


def get_latest_attempt(quiz: dict, user_id: str) -> Optional[dict]:
    attempts = get_user_attempts(quiz, user_id)
    return attempts[-1] if attempts else None


def quiz_stats(quiz: dict) -> dict:
    attempts = quiz.get("attempts", [])
    if not attempts:
        return {"total_attempts": 0, "average_score": None, "pass_rate": None}

    passing = sum(1 for a in attempts if a["score"] >= QUIZ_PASS_MARK)
    return {
        "total_attempts": len(attempts),
        "average_score": percentage(sum(a["score"] for a in attempts), 100 * len(attempts)),
        "pass_rate": percentage(passing, len(attempts)),
    }


def assignment_stats(assignment: dict) -> dict:
    submissions = assignment.get("submissions", [])
    graded = [s["grade"] for s in submissions if s.get("grade") is not None]
    return {
        "total_submissions": len(submissions),
        "average_grade": percentage(sum(graded), 100 * len(graded)) if graded else None,
    }

# ==================== ASSIGNMENTS ====================

async def create_assignment(db: AsyncIOMotorDatabase, payload: dict) -> dict:
    course = await require_course(db, payload["course_id"])
    now = utcnow()
    assignment = {
        "_id": new_id(),
        "course_id": course["_id"],
        # module is referenced by id only
        "module_id": parse_object_id(payload["module_id"], "module ID"),
        "title": payload["title"],
        "description": payload["description"],
        "submissions": [],
        "created_at": now,
        "updated_at": now,
    }
    await db.assignments.insert_one(assignment)
    return serialize_mongo(assignment)


async def get_assignment_submissions(db: AsyncIOMotorDatabase, assignment_id: str) -> dict:
    assignment = await require_assignment(db, assignment_id)
    assignment.update(assignment_stats(assignment))
    return {
        "assignment": serialize_mongo(assignment),
        "total_submissions": assignment["total_submissions"],
    }


async def submit_assignment(
    db: AsyncIOMotorDatabase, payload: dict, assignment_id: str, user_id: str
) -> dict:
    assignment = await require_assignment(db, assignment_id)
    submission_type = _enum_value(payload["submission_type"])
    now = utcnow()

    existing = next(
        (s for s in assignment.get("submissions", []) if s["user_id"] == user_id), None
    )
    if existing:
        # grade and feedback stay as they were
        await db.assignments.update_one(
            {"_id": assignment["_id"], "submissions._id": existing["_id"]},
            {"$set": {
                "submissions.$.submission_type": submission_type,
                "submissions.$.content": payload["content"],
                "submissions.$.submitted_at": now,
            }},
        )
        submission_id = existing["_id"]
    else:
        submission_id = new_id()
        await db.assignments.update_one(
            {"_id": assignment["_id"]},
            {"$push": {"submissions": {
                "_id": submission_id,
                "user_id": user_id,
                "submission_type": submission_type,
                "content": payload["content"],
                "submitted_at": now,
                "grade": None,
                "feedback": None,
            }}},
        )

    return {
        "message": "Assignment submitted successfully",
        "submission_id": str(submission_id),
        "resubmitted": existing is not None,
    }


async def grade_assignment(
    db: AsyncIOMotorDatabase,
    assignment_id: str,
    submission_id: str,
    grade: Optional[int],
    feedback: Optional[str] = None,
) -> dict:
    """Grade 0 is a valid grade; only a missing grade is rejected"""
    if grade is None:
        raise InvalidInput("Grade is required")

    assignment = await require_assignment(db, assignment_id)
    submission = find_by_id(
        assignment.get("submissions", []), parse_object_id(submission_id, "submission ID")
    )
    if submission is None:
        raise NotFound("Submission not found")

    submission["grade"] = grade
    submission["feedback"] = feedback if feedback is not None else ""

    await db.assignments.update_one(
        {"_id": assignment["_id"], "submissions._id": submission["_id"]},
        {"$set": {
            "submissions.$.grade": submission["grade"],
            "submissions.$.feedback": submission["feedback"],
        }},
    )
    logger.info("Submission %s of assignment %s graded %s", submission["_id"], assignment["_id"], grade)
    return serialize_mongo(submission)

# ==================== QUIZZES ====================

async def create_quiz(db: AsyncIOMotorDatabase, payload: dict) -> dict:
    course = await require_course(db, payload["course_id"])
    now = utcnow()
    quiz = {
        "_id": new_id(),
        "course_id": course["_id"],
        "module_id": parse_object_id(payload["module_id"], "module ID"),
        "title": payload["title"],
        "questions": [
            {
                "question": q["question"],
                "options": list(q["options"]),
                "correct_answer": q["correct_answer"],
            }
            for q in payload["questions"]
        ],
        "attempts": [],
        "created_at": now,
        "updated_at": now,
    }
    await db.quizzes.insert_one(quiz)
    return serialize_mongo(quiz)


async def get_quiz_for_student(db: AsyncIOMotorDatabase, quiz_id: str, user_id: str) -> dict:
    """Quiz without answer keys, plus the caller's best and latest attempts"""
    quiz = await require_quiz(db, quiz_id)
    return serialize_mongo({
        "_id": quiz["_id"],
        "course_id": quiz["course_id"],
        "module_id": quiz["module_id"],
        "title": quiz["title"],
        "questions": [
            {"question": q["question"], "options": q["options"]} for q in quiz["questions"]
        ],
        "best_attempt": get_best_attempt(quiz, user_id),
        "latest_attempt": get_latest_attempt(quiz, user_id),
    })


async def get_quiz_results(db: AsyncIOMotorDatabase, quiz_id: str) -> dict:
    quiz = await require_quiz(db, quiz_id)
    quiz.update(quiz_stats(quiz))
    return serialize_mongo(quiz)


async def submit_quiz(
    db: AsyncIOMotorDatabase, quiz_id: str, answers: Sequence[int], user_id: str
) -> dict:
    """
    Score answers and append an attempt.

    Returns:
        {"score": int, "correct_answers": int, "total_questions": int}
    """
    quiz = await require_quiz(db, quiz_id)
    result = score_answers(quiz["questions"], answers)

    await db.quizzes.update_one(
        {"_id": quiz["_id"]},
        {"$push": {"attempts": {
            "_id": new_id(),
            "user_id": user_id,
            "answers": list(answers),
            "score": result["score"],
            "attempted_at": utcnow(),
        }}},
    )
    return result
