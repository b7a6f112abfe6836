"""
Quiz Persistence Orchestrator

Write path:  prompt → provider → normalizer → create_quiz (one transaction)
Also owns publishing and the quiz read operations.

A Quiz and all of its Questions are committed together or not at all.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import crud
from database.models import Question, QuestionType, Quiz
from generation.gpt_client import DEFAULT_MAX_OUTPUT_TOKENS, DEFAULT_TEMPERATURE, GenerationClient
from generation.normalizer import normalize_response
from generation.prompt_builder import build_quiz_prompt
from generation.schemas import DEFAULT_NUM_QUESTIONS, DEFAULT_QUIZ_TITLE, NormalizedQuizPayload
from services.errors import (
    AuthorizationError,
    GenerationError,
    InputError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

log = logging.getLogger("quiz.pipeline")


@dataclass
class CreatedQuiz:
    quiz: Quiz
    questions: List[Question] = field(default_factory=list)


def _require_id(value, name: str) -> int:
    if value is None or value == "":
        raise InputError(f"{name} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InputError(f"{name} must be an integer")


def _quiz_type(value) -> QuestionType:
    try:
        return QuestionType(value)
    except ValueError:
        raise InputError(f"type must be one of: {', '.join(t.value for t in QuestionType)}")


# ─── Create (transactional) ───────────────────────────────────────────────────

def create_quiz(
    db: Session,
    owner_id,
    requested_title: Optional[str],
    quiz_type,
    payload: NormalizedQuizPayload,
) -> CreatedQuiz:
    """
    Persist a quiz and its questions atomically.

    Args:
        db:              Session; the whole create runs in its current transaction
        owner_id:        Owning user ID
        requested_title: Caller's title; falls back to the payload title
        quiz_type:       Quiz-level type discriminator
        payload:         Normalized provider output

    Returns:
        CreatedQuiz with the committed quiz and its questions in order

    Raises:
        InputError:       owner_id missing
        ValidationError:  payload has no questions (nothing is written)
        PersistenceError: a row failed to insert (everything is rolled back)
    """
    owner = _require_id(owner_id, "owner id")
    qtype = _quiz_type(quiz_type)
    if not payload.questions:
        raise ValidationError("AI did not return valid questions")

    title = (requested_title or "").strip() or payload.title or DEFAULT_QUIZ_TITLE

    try:
        quiz = Quiz(title=title[:255], type=qtype, created_by=owner, is_published=False)
        db.add(quiz)
        db.flush()

        questions = []
        for position, item in enumerate(payload.questions):
            questions.append(_add_question(db, quiz, position, item))

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.exception(f"[CREATE] rolled back quiz for owner={owner}: {e.__class__.__name__}")
        raise PersistenceError("Failed to generate quiz") from e
    except Exception:
        db.rollback()
        log.exception(f"[CREATE] rolled back quiz for owner={owner}")
        raise

    db.refresh(quiz)
    for question in questions:
        db.refresh(question)
    log.info(f"[CREATE] quiz={quiz.id} owner={owner} questions={len(questions)}")
    return CreatedQuiz(quiz=quiz, questions=questions)


def _add_question(db: Session, quiz: Quiz, position: int, item) -> Question:
    """Insert one question row inside the caller's transaction."""
    question = Question(
        quiz_id=quiz.id,
        position=position,
        question_text=item.questionText,
        options=item.options if item.type == QuestionType.MULTIPLE_CHOICE else None,
        correct_answer=item.correctAnswer,
        type=item.type,
    )
    db.add(question)
    db.flush()
    return question


# ─── Generate (provider → normalize → create) ─────────────────────────────────

async def generate_quiz(
    db: Session,
    client: GenerationClient,
    owner_id,
    title: Optional[str],
    quiz_type,
    source_text: Optional[str],
    num_questions: int = DEFAULT_NUM_QUESTIONS,
) -> CreatedQuiz:
    """
    Generate a quiz from extracted source text and store it.

    The provider is called before any transaction is opened, so a provider
    failure leaves nothing to undo.
    """
    owner = _require_id(owner_id, "createdBy (user id)")
    if not isinstance(source_text, str) or not source_text.strip():
        raise InputError("prompt is required to generate a quiz")
    qtype = _quiz_type(quiz_type)

    try:
        prompt = build_quiz_prompt(source_text, qtype.value, num_questions)
    except ValueError as e:
        raise InputError(str(e))

    log.info(f"[GENERATE] owner={owner} type={qtype.value} n={num_questions} source_chars={len(source_text)}")
    try:
        raw = await client.complete(
            prompt,
            temperature=DEFAULT_TEMPERATURE,
            max_output_tokens=DEFAULT_MAX_OUTPUT_TOKENS,
        )
    except Exception as e:
        log.error(f"[GENERATE] provider call failed: {e}")
        raise GenerationError(f"AI generation failed: {e}") from e

    result = normalize_response(raw, qtype.value, num_questions)
    if result.failure_reason:
        log.warning(f"[GENERATE] normalization failed for owner={owner}: {result.failure_reason}")

    kept = [q for q in result.payload.questions if q.questionText.strip()]
    dropped = len(result.payload.questions) - len(kept)
    if dropped:
        log.info(f"[GENERATE] dropped {dropped} question(s) with no text")
    payload = NormalizedQuizPayload(title=result.payload.title, questions=kept)

    return create_quiz(db, owner, title, qtype, payload)


# ─── Publish ───────────────────────────────────────────────────────────────────

def publish_quiz(db: Session, quiz_id, requester_id) -> Quiz:
    """Mark a quiz published. Only its owner may do this; repeating it is a no-op."""
    qid = _require_id(quiz_id, "quizId")
    uid = _require_id(requester_id, "userId")

    quiz = crud.get_quiz(db, qid)
    if not quiz:
        raise NotFoundError("Quiz not found")
    if quiz.created_by != uid:
        raise AuthorizationError("Not authorized to publish this quiz")

    if not quiz.is_published:
        try:
            quiz.is_published = True
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            log.exception(f"[PUBLISH] quiz={qid} failed")
            raise PersistenceError("Internal server error") from e
        db.refresh(quiz)
        log.info(f"[PUBLISH] quiz={qid} by user={uid}")
    return quiz


# ─── Reads ─────────────────────────────────────────────────────────────────────

def list_user_quizzes(db: Session, user_id) -> List[Quiz]:
    return crud.get_quizzes_by_owner(db, _require_id(user_id, "userId"))


def get_quiz_with_questions(db: Session, quiz_id) -> CreatedQuiz:
    """Quiz plus its questions ordered by position."""
    qid = _require_id(quiz_id, "quizId")
    quiz = crud.get_quiz(db, qid)
    if not quiz:
        raise NotFoundError("Quiz not found")
    return CreatedQuiz(quiz=quiz, questions=crud.get_questions_for_quiz(db, qid))
