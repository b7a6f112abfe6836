"""
Quizzes router.
Generate a quiz from extracted text, list/fetch quizzes, publish, and submit
answers for grading.

Caller identity arrives in the request (created_by / user_id); verifying it
is the auth layer's job.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database.database import get_db
from database.schemas import (
    QuizGenerateRequest, QuizPublishRequest, QuizEnvelope, QuizList,
    QuizResponse, QuizWithQuestions, QuestionResponse,
    SubmissionRequest, ResultEnvelope, ResultResponse,
)
from generation.gpt_client import GenerationClient
from services import quiz_service, result_service
from services.errors import QuizServiceError, PersistenceError

router = APIRouter(prefix="/quizzes", tags=["quizzes"])

log = logging.getLogger(__name__)


# ─── Helpers ───────────────────────────────────────────────────────────────────

def get_generation_client(request: Request) -> GenerationClient:
    """Provider client chosen once at startup (see quiz_api.lifespan)."""
    client = getattr(request.app.state, "generation_client", None)
    if client is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="No AI service available to generate quiz")
    return client


def as_http_exception(e: QuizServiceError) -> HTTPException:
    if isinstance(e, PersistenceError):
        log.error(f"Persistence failure surfaced to caller: {e.detail}")
    return HTTPException(status_code=e.status_code, detail=e.detail)


def _with_questions(created) -> QuizWithQuestions:
    return QuizWithQuestions(
        quiz=QuizResponse.model_validate(created.quiz),
        questions=[QuestionResponse.model_validate(q) for q in created.questions],
    )


# ─── Routes ────────────────────────────────────────────────────────────────────

@router.post("/generate", response_model=QuizWithQuestions, status_code=status.HTTP_201_CREATED)
async def generate_quiz(
    request: QuizGenerateRequest,
    db: Session = Depends(get_db),
    client: GenerationClient = Depends(get_generation_client),
):
    """
    **Generate a quiz from extracted document text.**

    The AI output is normalized into questions and stored together with the
    quiz in one transaction. Returns 502 when the AI output has no usable
    questions; nothing is stored in that case.
    """
    try:
        created = await quiz_service.generate_quiz(
            db,
            client,
            owner_id=request.created_by,
            title=request.title,
            quiz_type=request.type,
            source_text=request.prompt,
            num_questions=request.num_questions,
        )
    except QuizServiceError as e:
        raise as_http_exception(e)
    return _with_questions(created)


@router.get("/user/{user_id}", response_model=QuizList)
def get_user_quizzes(user_id: int, db: Session = Depends(get_db)):
    """List quizzes created by a user, newest first."""
    try:
        quizzes = quiz_service.list_user_quizzes(db, user_id)
    except QuizServiceError as e:
        raise as_http_exception(e)
    return QuizList(quizzes=[QuizResponse.model_validate(q) for q in quizzes])


@router.get("/{quiz_id}", response_model=QuizWithQuestions)
def get_quiz_by_id(quiz_id: int, db: Session = Depends(get_db)):
    """Return a quiz with its questions."""
    try:
        created = quiz_service.get_quiz_with_questions(db, quiz_id)
    except QuizServiceError as e:
        raise as_http_exception(e)
    return _with_questions(created)


@router.post("/publish/{quiz_id}", response_model=QuizEnvelope)
def publish_quiz(quiz_id: int, request: QuizPublishRequest, db: Session = Depends(get_db)):
    """Publish a quiz (owner only)."""
    try:
        quiz = quiz_service.publish_quiz(db, quiz_id, request.user_id)
    except QuizServiceError as e:
        raise as_http_exception(e)
    return QuizEnvelope(quiz=QuizResponse.model_validate(quiz))


@router.post("/submit/{quiz_id}", response_model=ResultEnvelope, status_code=status.HTTP_201_CREATED)
def submit_results(quiz_id: int, request: SubmissionRequest, db: Session = Depends(get_db)):
    """Grade a set of answers and store the result."""
    try:
        result = result_service.grade_and_store_submission(db, quiz_id, request.user_id, request.answers)
    except QuizServiceError as e:
        raise as_http_exception(e)
    return ResultEnvelope(result=ResultResponse.model_validate(result))
