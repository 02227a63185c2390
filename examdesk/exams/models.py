from pydantic import BaseModel, Field, validator
from typing import List, Optional, Union
from enum import Enum

# ==================== ENUMS ====================

class ExamKind(str, Enum):
    MOCK = "mock"
    PYQ = "pyq"

class DifficultyLevel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

# Identifiers arrive as numbers or strings; services canonicalize them
RawId = Union[int, str]

# ==================== QUESTION MODELS ====================

class OptionIn(BaseModel):
    id: RawId
    label: str

class QuestionCreate(BaseModel):
    question_text: str
    options: List[OptionIn]
    correct_option_id: RawId
    difficulty: Optional[DifficultyLevel] = None
    image_url: Optional[str] = None
    image_base64: Optional[str] = None  # raw image bytes, uploaded to storage
    image_content_type: Optional[str] = None

    @validator('question_text')
    def validate_text(cls, v):
        if not v or not v.strip():
            raise ValueError('question_text cannot be empty')
        return v

# ==================== ATTEMPT MODELS ====================

class AnswerIn(BaseModel):
    question_id: RawId
    selected_option_id: Optional[RawId] = None

class MockSubmit(BaseModel):
    course_id: str
    answers: List[AnswerIn] = Field(default_factory=list)

class PYQSubmit(BaseModel):
    paper_id: str
    answers: List[AnswerIn] = Field(default_factory=list)

# ==================== PAPER MODELS ====================

class PaperCreate(BaseModel):
    year: int
    exam_day: Optional[str] = None
    title: Optional[str] = None

    @validator('year')
    def validate_year(cls, v):
        if v < 1900 or v > 2100:
            raise ValueError('year must be between 1900 and 2100')
        return v

# ==================== REPORT MODELS ====================

class MockScoreReportRequest(BaseModel):
    student_id: str
    course_id: str

class PYQScoreReportRequest(BaseModel):
    student_id: str
