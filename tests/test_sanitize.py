# tests/test_sanitize.py
import json

from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from app.courses.sanitize import (
    SanitizeInputsMiddleware, sanitize_json_body, sanitize_query_string, sanitize_value,
)


def test_sanitize_value_drops_operator_keys_recursively():
    dirty = {
        "email": {"$gt": ""},
        "profile.name": "x",
        "title": "function() { return 1 }",
        "items": [{"$where": "1"}, "{a}"],
        "count": 3,
    }
    assert sanitize_value(dirty) == {
        "email": {},
        "title": "function() [ return 1 ]",
        "items": [{}, "[a]"],
        "count": 3,
    }


def test_sanitize_query_string():
    cleaned = sanitize_query_string(b"search=%7Bx%7D&%24where=1&page=2")
    assert cleaned == b"search=%5Bx%5D&page=2"


def test_sanitize_json_body_leaves_invalid_json():
    assert sanitize_json_body(b"{broken") == b"{broken"
    assert sanitize_json_body(b"") == b""
    assert json.loads(sanitize_json_body(b'{"$ne": 1, "a": "{}"}')) == {"a": "[]"}


async def test_middleware_rewrites_body_and_query():
    app = FastAPI()
    app.add_middleware(SanitizeInputsMiddleware)

    @app.post("/echo")
    async def echo(request: Request):
        return {"body": await request.json(), "query": dict(request.query_params)}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post(
            "/echo?q=%7Bx%7D&%24gt=1",
            json={"user": {"$gt": ""}, "note": "{hi}"},
        )

    assert r.status_code == 200
    assert r.json() == {"body": {"user": {}, "note": "[hi]"}, "query": {"q": "[x]"}}


async def test_middleware_passes_non_json_through():
    app = FastAPI()
    app.add_middleware(SanitizeInputsMiddleware)

    @app.post("/raw")
    async def raw(request: Request):
        return {"body": (await request.body()).decode()}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/raw", content=b"{keep}", headers={"content-type": "text/plain"})

    assert r.json() == {"body": "{keep}"}
