"""
Pydantic schemas for the quiz generation pipeline.
The normalized payload is transient: it is validated here and persisted
row by row by services.quiz_service.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from database.models import QuestionType


DEFAULT_QUIZ_TITLE = "Generated Quiz"
DEFAULT_NUM_QUESTIONS = 10


class NormalizedQuestion(BaseModel):
    """One question recovered from provider output."""
    questionText: str = ""
    options: Optional[List[str]] = None
    correctAnswer: Optional[str] = None
    type: QuestionType = QuestionType.MULTIPLE_CHOICE


class NormalizedQuizPayload(BaseModel):
    """Output of the normalizer: possibly empty, never malformed."""
    title: Optional[str] = None
    questions: List[NormalizedQuestion] = Field(default_factory=list)


class NormalizationResult(BaseModel):
    """Payload plus the diagnostics of how (or whether) it was recovered."""
    payload: NormalizedQuizPayload
    strategy: str = "none"
    failure_reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failure_reason is None
