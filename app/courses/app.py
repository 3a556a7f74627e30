"""
Course System - Application wiring
Routers, middleware, database and cache lifecycle
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from motor.motor_asyncio import AsyncIOMotorClient

from app.courses import config
from app.courses.admin_router import router as admin_router
from app.courses.cache import build_cache
from app.courses.course_router import router as course_router
from app.courses.database import create_indexes
from app.courses.logging_config import configure_logging
from app.courses.sanitize import SanitizeInputsMiddleware
from app.courses.student_router import router as student_router

logger = logging.getLogger(__name__)

# ==================== ROUTER SETUP ====================

def setup_course_routes(app: FastAPI):
    """Register all course-related routers"""
    app.include_router(course_router, prefix="/courses")
    app.include_router(student_router, prefix="/student")
    app.include_router(admin_router, prefix="/admin")

# ==================== STARTUP ====================

async def startup_course_system(app: FastAPI):
    """Open the Mongo client and cache unless already provided"""
    if getattr(app.state, "db", None) is None:
        client = AsyncIOMotorClient(config.MONGO_URL)
        app.state.mongo_client = client
        app.state.db = client[config.MONGO_DB_NAME]
    if getattr(app.state, "cache", None) is None:
        app.state.cache = build_cache(config.REDIS_URL)

    await create_indexes(app.state.db)
    logger.info("Course system initialized")

async def shutdown_course_system(app: FastAPI):
    await app.state.cache.close()
    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        client.close()
    logger.info("Course system stopped")

@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup_course_system(app)
    yield
    await shutdown_course_system(app)

# ==================== APP FACTORY ====================

def create_app(db=None, cache=None) -> FastAPI:
    """
    Build the API. Pass `db`/`cache` to reuse existing handles;
    otherwise they are created from config on startup.
    """
    configure_logging(config.LOG_LEVEL)

    app = FastAPI(title="LMS Course API", lifespan=lifespan)
    app.state.db = db
    app.state.cache = cache

    app.add_middleware(SanitizeInputsMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_course_routes(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
