from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import datetime
from enum import Enum
from urllib.parse import urlparse

from app.courses.config import ALLOWED_LINK_DOMAINS, QUIZ_MAX_QUESTIONS, QUIZ_OPTION_COUNT

# ==================== ENUMS ====================

class CourseCategory(str, Enum):
    WEB_DEVELOPMENT = "Web Development"
    MOBILE_DEVELOPMENT = "Mobile Development"
    DATA_SCIENCE = "Data Science"
    AI_ML = "AI/ML"
    DEVOPS = "DevOps"
    OTHER = "Other"

class SubmissionType(str, Enum):
    LINK = "link"
    TEXT = "text"

class UserRole(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"

# ==================== LESSON MODELS ====================

class LessonCreate(BaseModel):
    title: str = Field(..., min_length=1)
    video_url: str
    duration: int = Field(..., gt=0)  # seconds
    order: Optional[int] = None  # defaults to max(order) + 1

class LessonUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    video_url: Optional[str] = None
    duration: Optional[int] = Field(None, gt=0)
    order: Optional[int] = None

# ==================== MODULE MODELS ====================

class ModuleCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    order: Optional[int] = None
    lessons: List[LessonCreate] = []

class ModuleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    order: Optional[int] = None

class ReorderItem(BaseModel):
    id: str
    order: int

class ReorderPayload(BaseModel):
    items: List[ReorderItem]

# ==================== COURSE MODELS ====================

class BatchInfo(BaseModel):
    number: int = 1
    start_date: datetime = Field(default_factory=datetime.utcnow)

class CourseCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    instructor: str = Field(..., min_length=2, max_length=100)
    category: CourseCategory
    tags: List[str] = []
    price: float = Field(..., ge=0)
    thumbnail: Optional[str] = None
    modules: List[ModuleCreate] = []
    batch: BatchInfo = Field(default_factory=BatchInfo)
    is_published: bool = True

    @validator("tags")
    def strip_tags(cls, v):
        return [t.strip() for t in v if t.strip()]

class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=2000)
    instructor: Optional[str] = Field(None, min_length=2, max_length=100)
    category: Optional[CourseCategory] = None
    tags: Optional[List[str]] = None
    price: Optional[float] = Field(None, ge=0)
    thumbnail: Optional[str] = None
    is_published: Optional[bool] = None

# ==================== PROGRESS MODELS ====================

class ProgressUpdate(BaseModel):
    enrollment_id: str
    module_id: str
    lesson_id: str

# ==================== ASSIGNMENT MODELS ====================

class AssignmentCreate(BaseModel):
    course_id: str
    module_id: str
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10, max_length=2000)

class SubmissionCreate(BaseModel):
    submission_type: SubmissionType = SubmissionType.TEXT
    content: str = Field(..., min_length=1, max_length=5000)

    @validator("content")
    def validate_link(cls, v, values):
        if values.get("submission_type") != SubmissionType.LINK:
            return v
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError("Invalid URL format for link submission")
        if not any(domain in parsed.hostname for domain in ALLOWED_LINK_DOMAINS):
            raise ValueError(
                "Link must be from Google Drive, Dropbox, GitHub, GitLab, Bitbucket, or OneDrive"
            )
        return v

class GradePayload(BaseModel):
    # Optional here so a missing grade reaches the service as InvalidInput
    grade: Optional[int] = Field(None, ge=0, le=100)
    feedback: Optional[str] = Field(None, max_length=1000)

# ==================== QUIZ MODELS ====================

class QuestionCreate(BaseModel):
    question: str = Field(..., min_length=5, max_length=500)
    options: List[str]
    correct_answer: int = Field(..., ge=0, le=QUIZ_OPTION_COUNT - 1)

    @validator("options")
    def validate_options(cls, v):
        if len(v) != QUIZ_OPTION_COUNT:
            raise ValueError(f"Each question must have exactly {QUIZ_OPTION_COUNT} options")
        cleaned = [o.strip() for o in v]
        if any(not o or len(o) > 200 for o in cleaned):
            raise ValueError("Options must be 1-200 characters")
        return cleaned

class QuizCreate(BaseModel):
    course_id: str
    module_id: str
    title: str = Field(..., min_length=3, max_length=200)
    questions: List[QuestionCreate]

    @validator("questions")
    def validate_question_count(cls, v):
        if not 1 <= len(v) <= QUIZ_MAX_QUESTIONS:
            raise ValueError(f"Quiz must have between 1 and {QUIZ_MAX_QUESTIONS} questions")
        return v

class QuizSubmit(BaseModel):
    answers: List[int]

    @validator("answers")
    def validate_answers(cls, v):
        if not 1 <= len(v) <= QUIZ_MAX_QUESTIONS:
            raise ValueError(f"Submit between 1 and {QUIZ_MAX_QUESTIONS} answers")
        if any(a < 0 or a >= QUIZ_OPTION_COUNT for a in v):
            raise ValueError(f"Answer index must be between 0 and {QUIZ_OPTION_COUNT - 1}")
        return v

# ==================== RESPONSE MODELS ====================

class ProgressResponse(BaseModel):
    progress: int  # may exceed 100 after lessons are deleted
    completed_lessons: int

class QuizResultResponse(BaseModel):
    score: int
    correct_answers: int
    total_questions: int
