"""
Course System Configuration
Database, cache and grading settings
"""

import os

# MongoDB
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "lms_db")

# Redis (empty URL disables caching)
REDIS_URL = os.getenv("REDIS_URL", "")

# Course listing cache
COURSE_CACHE_PREFIX = "courses"
COURSE_CACHE_TTL_SECONDS = int(os.getenv("COURSE_CACHE_TTL_SECONDS", "300"))

# Pagination
DEFAULT_PAGE_SIZE = 10
ADMIN_PAGE_SIZE = 20

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

# Assignment link submissions must point at one of these hosts
ALLOWED_LINK_DOMAINS = [
    "drive.google.com",
    "dropbox.com",
    "github.com",
    "gitlab.com",
    "bitbucket.org",
    "onedrive.live.com",
]

# Quiz settings
QUIZ_PASS_MARK = 70
QUIZ_MAX_QUESTIONS = 50
QUIZ_OPTION_COUNT = 4
