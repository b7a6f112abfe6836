"""
SQLAlchemy models for the quiz store
User → Quiz → Question, and Result rows per submission

Quiz and its Questions are written together in one transaction by
services.quiz_service. Results are append-only.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, Numeric, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from database.database import Base


class QuestionType(str, enum.Enum):
    """Question / quiz type discriminator"""
    MULTIPLE_CHOICE = "multiple-choice"
    TEXT = "text"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# ==========================================
# USERS
# ==========================================

class User(Base):
    """
    Account row referenced by quizzes and results.
    Credentials and sessions live in the auth service, not here.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    quizzes = relationship("Quiz", back_populates="owner")
    results = relationship("Result", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


# ==========================================
# QUIZZES
# ==========================================

class Quiz(Base):
    """
    Quiz header. Created only after the provider output normalized to at
    least one question; the only later mutation is publishing.

    file_url references the source document when an upload layer records
    one; this service only receives extracted text and leaves it NULL.
    """
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    type = Column(
        SQLEnum(QuestionType, name="quiz_type", values_callable=_enum_values),
        nullable=False,
        default=QuestionType.MULTIPLE_CHOICE,
    )
    file_url = Column(String(2048), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    owner = relationship("User", back_populates="quizzes")
    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )
    results = relationship("Result", back_populates="quiz", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Quiz(id={self.id}, title='{self.title}', published={self.is_published})>"


class Question(Base):
    """One quiz question. options is a JSON list of strings for multiple-choice, else NULL."""
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    question_text = Column(Text, nullable=False)
    options = Column(JSON, nullable=True)
    correct_answer = Column(String(1024), nullable=True)
    type = Column(
        SQLEnum(QuestionType, name="question_type", values_callable=_enum_values),
        nullable=False,
        default=QuestionType.MULTIPLE_CHOICE,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    quiz = relationship("Quiz", back_populates="questions")

    def __repr__(self):
        return f"<Question(id={self.id}, quiz_id={self.quiz_id}, position={self.position})>"


# ==========================================
# RESULTS
# ==========================================

class Result(Base):
    """
    One graded (or client-scored) submission.
    answers: [{"questionId": int, "answer": any, "isCorrect": bool}, ...]
    """
    __tablename__ = "results"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    answers = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    quiz = relationship("Quiz", back_populates="results")
    user = relationship("User", back_populates="results")

    def __repr__(self):
        return f"<Result(id={self.id}, quiz_id={self.quiz_id}, user_id={self.user_id}, score={self.score})>"
