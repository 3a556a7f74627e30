from fastapi import Depends, Header, HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.courses.cache import CourseCache
from app.courses.errors import Forbidden
from app.courses.models import UserRole

# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """Database dependency"""
    return request.app.state.db

async def get_cache(request: Request) -> CourseCache:
    """Cache dependency; a NullCache when caching is disabled"""
    return request.app.state.cache

async def get_current_user_id(x_user_id: str = Header(None)) -> str:
    """
    Identity set by the upstream auth gateway.
    Token issuance and verification happen before requests reach this service.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing user identity")
    return x_user_id

async def get_current_role(x_user_role: str = Header(None)) -> str:
    return (x_user_role or "").lower()

def require_role(role: UserRole):
    async def checker(
        user_id: str = Depends(get_current_user_id),
        current_role: str = Depends(get_current_role),
    ) -> str:
        if current_role != role.value:
            raise Forbidden("Not authorized")
        return user_id
    return checker

require_student = require_role(UserRole.STUDENT)
require_admin = require_role(UserRole.ADMIN)
