"""
Results router.
Save a client-scored result and list a user's results with quiz summaries.
Graded submissions go through POST /quizzes/submit/{quiz_id}.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database.database import get_db
from database.schemas import (
    SaveResultRequest, ResultEnvelope, ResultResponse,
    ResultList, ResultWithQuiz, QuizSummary,
)
from routers.quizzes import as_http_exception
from services import result_service
from services.errors import QuizServiceError

router = APIRouter(prefix="/results", tags=["results"])


@router.post("/save", response_model=ResultEnvelope, status_code=status.HTTP_201_CREATED)
def save_result(request: SaveResultRequest, db: Session = Depends(get_db)):
    try:
        result = result_service.save_result(db, request.quiz_id, request.user_id, request.score, request.answers)
    except QuizServiceError as e:
        raise as_http_exception(e)
    return ResultEnvelope(result=ResultResponse.model_validate(result))


@router.get("/user/{user_id}", response_model=ResultList)
def get_user_results(user_id: int, db: Session = Depends(get_db)):
    """Results for a user, newest first, each with a lightweight quiz summary."""
    try:
        rows = result_service.get_user_results(db, user_id)
    except QuizServiceError as e:
        raise as_http_exception(e)
    return ResultList(results=[
        ResultWithQuiz(
            result=ResultResponse.model_validate(result),
            quiz=QuizSummary.model_validate(quiz) if quiz else None,
        )
        for result, quiz in rows
    ])
