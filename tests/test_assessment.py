# tests/test_assessment.py
from datetime import datetime

import pytest
from bson import ObjectId

from app.courses import assessment
from app.courses.assessment import (
    create_assignment, create_quiz, get_assignment_submissions, get_best_attempt,
    get_latest_attempt, get_quiz_for_student, get_quiz_results, grade_assignment,
    quiz_stats, score_answers, submit_assignment, submit_quiz,
)
from app.courses.errors import InvalidInput, NotFound

TWO_QUESTIONS = [{"correct_answer": 0}, {"correct_answer": 2}]


def quiz_payload(course_id, module_id, correct=(0, 2)):
    return {
        "course_id": course_id,
        "module_id": module_id,
        "title": "Checkpoint quiz",
        "questions": [
            {"question": f"Question {i}?", "options": ["a", "b", "c", "d"], "correct_answer": c}
            for i, c in enumerate(correct)
        ],
    }


def assignment_payload(course_id, module_id):
    return {
        "course_id": course_id,
        "module_id": module_id,
        "title": "Build a CLI",
        "description": "Write a small command line tool and share it.",
    }


@pytest.mark.parametrize("answers, score, correct", [
    ([0, 2], 100, 2),
    ([1, 2], 50, 1),
    ([], 0, 0),
    ([0], 50, 1),
    ([0, 2, 3, 1], 100, 2),
])
def test_score_answers(answers, score, correct):
    result = score_answers(TWO_QUESTIONS, answers)
    assert result == {"score": score, "correct_answers": correct, "total_questions": 2}


def test_best_and_latest_attempt():
    quiz = {"attempts": [
        {"user_id": "u1", "score": 40},
        {"user_id": "u2", "score": 100},
        {"user_id": "u1", "score": 80},
        {"user_id": "u1", "score": 60},
    ]}
    assert get_best_attempt(quiz, "u1")["score"] == 80
    assert get_latest_attempt(quiz, "u1")["score"] == 60
    assert get_best_attempt(quiz, "u3") is None
    assert get_latest_attempt(quiz, "u3") is None


def test_quiz_stats():
    assert quiz_stats({"attempts": []}) == {
        "total_attempts": 0, "average_score": None, "pass_rate": None
    }
    stats = quiz_stats({"attempts": [{"score": 70}, {"score": 50}, {"score": 100}]})
    assert stats == {"total_attempts": 3, "average_score": 73, "pass_rate": 67}


async def test_submit_quiz_appends_every_attempt(db, two_lesson_course):
    course_id = two_lesson_course["_id"]
    module_id = two_lesson_course["modules"][0]["_id"]
    quiz = await create_quiz(db, quiz_payload(course_id, module_id))

    assert await submit_quiz(db, quiz["_id"], [0, 2], "u1") == {
        "score": 100, "correct_answers": 2, "total_questions": 2
    }
    assert (await submit_quiz(db, quiz["_id"], [1, 2], "u1"))["score"] == 50
    assert (await submit_quiz(db, quiz["_id"], [], "u1"))["score"] == 0

    stored = await db.quizzes.find_one({"_id": ObjectId(quiz["_id"])})
    assert [a["score"] for a in stored["attempts"]] == [100, 50, 0]
    assert all(a["user_id"] == "u1" for a in stored["attempts"])

    view = await get_quiz_for_student(db, quiz["_id"], "u1")
    assert "correct_answer" not in view["questions"][0]
    assert view["best_attempt"]["score"] == 100
    assert view["latest_attempt"]["score"] == 0

    results = await get_quiz_results(db, quiz["_id"])
    assert results["total_attempts"] == 3


async def test_quiz_not_found(db):
    with pytest.raises(NotFound):
        await submit_quiz(db, str(ObjectId()), [0], "u1")


async def test_create_quiz_requires_course(db):
    with pytest.raises(NotFound):
        await create_quiz(db, quiz_payload(str(ObjectId()), str(ObjectId())))


async def test_module_reference_not_enforced(db, two_lesson_course):
    assignment = await create_assignment(
        db, assignment_payload(two_lesson_course["_id"], str(ObjectId()))
    )
    assert assignment["submissions"] == []


async def test_resubmission_overwrites_and_keeps_grade(db, two_lesson_course, monkeypatch):
    assignment = await create_assignment(
        db, assignment_payload(two_lesson_course["_id"], two_lesson_course["modules"][0]["_id"])
    )
    monkeypatch.setattr(assessment, "utcnow", lambda: datetime(2024, 3, 1, 9, 0))
    first = await submit_assignment(
        db, {"submission_type": "text", "content": "v1"}, assignment["_id"], "u1"
    )
    assert first["resubmitted"] is False

    await grade_assignment(db, assignment["_id"], first["submission_id"], 85, "Nice work")

    monkeypatch.setattr(assessment, "utcnow", lambda: datetime(2024, 3, 2, 17, 30))
    second = await submit_assignment(
        db, {"submission_type": "link", "content": "https://github.com/u1/cli"},
        assignment["_id"], "u1",
    )
    assert second["resubmitted"] is True
    assert second["submission_id"] == first["submission_id"]

    stored = await db.assignments.find_one({"_id": ObjectId(assignment["_id"])})
    assert len(stored["submissions"]) == 1
    sub = stored["submissions"][0]
    assert sub["submission_type"] == "link"
    assert sub["content"] == "https://github.com/u1/cli"
    assert sub["grade"] == 85
    assert sub["feedback"] == "Nice work"
    assert sub["submitted_at"] == datetime(2024, 3, 2, 17, 30)


async def test_submissions_from_different_users_append(db, two_lesson_course):
    assignment = await create_assignment(
        db, assignment_payload(two_lesson_course["_id"], two_lesson_course["modules"][0]["_id"])
    )
    for user in ("u1", "u2"):
        await submit_assignment(db, {"submission_type": "text", "content": user}, assignment["_id"], user)

    listing = await get_assignment_submissions(db, assignment["_id"])
    assert listing["total_submissions"] == 2
    assert listing["assignment"]["average_grade"] is None
    assert listing["assignment"]["submissions"][0]["grade"] is None


async def test_grade_zero_is_persisted(db, two_lesson_course):
    assignment = await create_assignment(
        db, assignment_payload(two_lesson_course["_id"], two_lesson_course["modules"][0]["_id"])
    )
    sub = await submit_assignment(db, {"submission_type": "text", "content": "x"}, assignment["_id"], "u1")

    graded = await grade_assignment(db, assignment["_id"], sub["submission_id"], 0)
    assert graded["grade"] == 0
    assert graded["feedback"] == ""

    stored = await db.assignments.find_one({"_id": ObjectId(assignment["_id"])})
    assert stored["submissions"][0]["grade"] == 0
    assert stored["submissions"][0]["feedback"] == ""


async def test_grade_errors(db, two_lesson_course):
    assignment = await create_assignment(
        db, assignment_payload(two_lesson_course["_id"], two_lesson_course["modules"][0]["_id"])
    )
    sub = await submit_assignment(db, {"submission_type": "text", "content": "x"}, assignment["_id"], "u1")

    with pytest.raises(InvalidInput):
        await grade_assignment(db, assignment["_id"], sub["submission_id"], None)
    with pytest.raises(NotFound):
        await grade_assignment(db, assignment["_id"], str(ObjectId()), 50)
    with pytest.raises(NotFound):
        await grade_assignment(db, str(ObjectId()), sub["submission_id"], 50)
    with pytest.raises(InvalidInput):
        await grade_assignment(db, assignment["_id"], "nope", 50)
