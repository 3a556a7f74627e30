from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException


class NotFound(HTTPException):
    """Entity does not exist, or exists outside the caller's ownership scope."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class InvalidInput(HTTPException):
    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status_code=400, detail=detail)


class Conflict(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=409, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str = "Not authorized"):
        super().__init__(status_code=403, detail=detail)


def parse_object_id(value, label: str = "id") -> ObjectId:
    """Convert a 24-hex string to ObjectId or raise InvalidInput"""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise InvalidInput(f"Invalid {label} format")
