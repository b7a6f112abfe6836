"""
Pydantic schemas for request/response validation
Separate from SQLAlchemy models for clean API contracts
"""

from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Optional, List
from datetime import datetime

from database.models import QuestionType


# ==========================================
# QUIZ SCHEMAS
# ==========================================

class QuizGenerateRequest(BaseModel):
    """Body of POST /quizzes/generate"""
    prompt: Optional[str] = Field(None, description="Extracted source text to build the quiz from")
    title: Optional[str] = Field(None, max_length=255, description="Title override")
    type: QuestionType = Field(default=QuestionType.MULTIPLE_CHOICE, description="Question type for the quiz")
    num_questions: int = Field(default=10, ge=1, le=50, description="Number of questions to request")
    created_by: Optional[int] = Field(None, description="Owner user ID")


class QuizPublishRequest(BaseModel):
    user_id: Optional[int] = Field(None, description="Requesting user ID")


class QuizResponse(BaseModel):
    id: int
    title: str
    type: QuestionType
    file_url: Optional[str] = None
    created_by: int
    is_published: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class QuestionResponse(BaseModel):
    id: int
    quiz_id: int
    position: int
    question_text: str
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = None
    type: QuestionType

    model_config = ConfigDict(from_attributes=True)


class QuizWithQuestions(BaseModel):
    quiz: QuizResponse
    questions: List[QuestionResponse]


class QuizEnvelope(BaseModel):
    quiz: QuizResponse


class QuizList(BaseModel):
    quizzes: List[QuizResponse]


class QuizSummary(BaseModel):
    """Lightweight quiz view attached to result listings"""
    id: int
    title: str
    is_published: bool
    created_by: int

    model_config = ConfigDict(from_attributes=True)


# ==========================================
# SUBMISSION / RESULT SCHEMAS
# ==========================================

class SubmittedAnswer(BaseModel):
    """One answer in a submission. questionId is accepted as sent by the client."""
    question_id: int = Field(..., alias="questionId")
    answer: Any = None

    model_config = ConfigDict(populate_by_name=True)


class AnswerRecord(BaseModel):
    """Per-question grading outcome, stored verbatim in results.answers"""
    question_id: int = Field(..., alias="questionId")
    answer: Any = None
    is_correct: bool = Field(..., alias="isCorrect")

    model_config = ConfigDict(populate_by_name=True)


class SubmissionRequest(BaseModel):
    user_id: Optional[int] = None
    answers: Optional[List[Any]] = Field(None, description="[{questionId, answer}, ...]")


class SaveResultRequest(BaseModel):
    quiz_id: Optional[int] = None
    user_id: Optional[int] = None
    score: Optional[float] = None
    answers: Optional[List[Any]] = None


class ResultResponse(BaseModel):
    id: int
    quiz_id: int
    user_id: int
    score: float
    answers: Optional[List[Any]] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ResultEnvelope(BaseModel):
    result: ResultResponse


class ResultWithQuiz(BaseModel):
    result: ResultResponse
    quiz: Optional[QuizSummary] = None


class ResultList(BaseModel):
    results: List[ResultWithQuiz]
