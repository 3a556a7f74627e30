"""
Request sanitization middleware.

Strips MongoDB operator injection from JSON bodies and query strings before
they reach the routers:
- mapping keys that start with `$` or contain `.` are dropped
- `{` / `}` inside string values become `[` / `]`

Path parameters are left alone; every id taken from the path goes through
`parse_object_id`, which rejects anything that is not an ObjectId.
"""

import json
from urllib.parse import parse_qsl, urlencode


def is_unsafe_key(key) -> bool:
    return isinstance(key, str) and (key.startswith("$") or "." in key)


def replace_curlies(value: str) -> str:
    return value.replace("{", "[").replace("}", "]")


def sanitize_value(obj):
    """Recursively clean a decoded JSON value"""
    if isinstance(obj, str):
        return replace_curlies(obj)
    if isinstance(obj, list):
        return [sanitize_value(v) for v in obj]
    if isinstance(obj, dict):
        return {k: sanitize_value(v) for k, v in obj.items() if not is_unsafe_key(k)}
    return obj


def sanitize_query_string(raw: bytes) -> bytes:
    pairs = parse_qsl(raw.decode("latin-1"), keep_blank_values=True)
    cleaned = [(k, replace_curlies(v)) for k, v in pairs if not is_unsafe_key(k)]
    return urlencode(cleaned).encode("latin-1")


def sanitize_json_body(body: bytes) -> bytes:
    """Invalid JSON is returned untouched so validation can report it"""
    if not body:
        return body
    try:
        decoded = json.loads(body)
    except ValueError:
        return body
    return json.dumps(sanitize_value(decoded)).encode("utf-8")


class SanitizeInputsMiddleware:
    """Pure ASGI middleware so the rewritten body flows into FastAPI's request parsing"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        scope = dict(scope)
        if scope.get("query_string"):
            scope["query_string"] = sanitize_query_string(scope["query_string"])

        headers = scope.get("headers") or []
        content_type = next(
            (v.decode("latin-1") for k, v in headers if k.lower() == b"content-type"), ""
        )
        if "application/json" not in content_type:
            await self.app(scope, receive, send)
            return

        chunks = []
        while True:
            message = await receive()
            if message["type"] != "http.request":
                # client went away before the body arrived
                return
            chunks.append(message.get("body", b""))
            if not message.get("more_body", False):
                break

        body = sanitize_json_body(b"".join(chunks))
        scope["headers"] = [
            (k, v) for k, v in headers if k.lower() != b"content-length"
        ] + [(b"content-length", str(len(body)).encode("latin-1"))]

        sent = False

        async def replay():
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)
