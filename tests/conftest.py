import fakeredis
import pytest
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from app.courses import hierarchy
from app.courses.app import create_app
from app.courses.cache import RedisCache


def lesson(title, duration=300, order=None):
    data = {"title": title, "video_url": "https://cdn.example.com/v.mp4", "duration": duration}
    if order is not None:
        data["order"] = order
    return data


def module(title, lessons=(), order=None):
    data = {"title": title, "description": f"{title} module", "lessons": list(lessons)}
    if order is not None:
        data["order"] = order
    return data


def course_payload(modules=(), **overrides):
    payload = {
        "title": "Python Foundations",
        "description": "A hands-on introduction to Python programming.",
        "instructor": "Sam Lee",
        "category": "Web Development",
        "tags": ["python", "backend"],
        "price": 49.0,
        "modules": list(modules),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def db():
    """Provide a fresh in-memory Mongo database for each test."""
    return AsyncMongoMockClient()["lms_test"]


@pytest.fixture
def redis_client():
    return fakeredis.FakeAsyncRedis(decode_responses=True)


@pytest.fixture
def cache(redis_client):
    return RedisCache(redis_client)


@pytest.fixture
async def two_lesson_course(db, cache):
    """One module with lessons A and B."""
    return await hierarchy.create_course(
        db, cache, course_payload([module("Basics", [lesson("A"), lesson("B")])])
    )


@pytest.fixture
def app(db, cache):
    return create_app(db=db, cache=cache)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


STUDENT = {"X-User-Id": "student-1", "X-User-Role": "student"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
