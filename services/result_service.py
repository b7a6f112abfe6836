"""
Result Service

grade_and_store_submission: grade against the quiz's current questions and
insert one Result row. Every submission is a new row; nothing is updated.
"""

import logging
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import crud
from database.models import Quiz, Result
from database.schemas import SubmittedAnswer
from services.errors import InputError, NotFoundError, PersistenceError
from services.grading import grade

log = logging.getLogger(__name__)


def _require_id(value, message: str) -> int:
    if value is None or value == "":
        raise InputError(message)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InputError(message)


def parse_answers(answers: Any) -> List[SubmittedAnswer]:
    """Validate the raw answers array: [{questionId, answer}, ...]."""
    if not isinstance(answers, list):
        raise InputError("quizId, userId and answers array are required")
    parsed = []
    for index, item in enumerate(answers):
        if isinstance(item, SubmittedAnswer):
            parsed.append(item)
            continue
        if not isinstance(item, dict):
            raise InputError(f"answers[{index}] must be an object with questionId and answer")
        try:
            parsed.append(SubmittedAnswer.model_validate(item))
        except PydanticValidationError:
            raise InputError(f"answers[{index}] has a missing or invalid questionId")
    return parsed


def _insert_result(db: Session, quiz_id: int, user_id: int, score: float, answers: list) -> Result:
    try:
        return crud.create_result(db, quiz_id, user_id, score, answers)
    except SQLAlchemyError as e:
        db.rollback()
        log.exception(f"Result insert failed for quiz={quiz_id} user={user_id}")
        raise PersistenceError("Internal server error") from e


def grade_and_store_submission(db: Session, quiz_id, user_id, answers: Any) -> Result:
    """
    Grade a submission and store it as a new Result.

    Raises:
        InputError:       missing ids or malformed answers
        NotFoundError:    quiz does not exist
        PersistenceError: insert failed (rolled back)
    """
    message = "quizId, userId and answers array are required"
    qid = _require_id(quiz_id, message)
    uid = _require_id(user_id, message)
    submitted = parse_answers(answers)

    if crud.get_quiz(db, qid) is None:
        raise NotFoundError("Quiz not found")

    questions = crud.get_questions_for_quiz(db, qid)
    outcome = grade(questions, submitted)
    records = [record.model_dump(by_alias=True) for record in outcome.details]

    result = _insert_result(db, qid, uid, outcome.score, records)
    log.info(
        f"Submission quiz={qid} user={uid}: {outcome.correct_count}/{len(outcome.details)} "
        f"correct, score={outcome.score}"
    )
    return result


def save_result(db: Session, quiz_id, user_id, score: Optional[float], answers: Any) -> Result:
    """Store a client-computed score and answer list as a new Result."""
    qid = _require_id(quiz_id, "quizId and userId are required")
    uid = _require_id(user_id, "quizId and userId are required")
    if score is None or not isinstance(answers, list):
        raise InputError("score and answers array are required")
    try:
        score = float(score)
    except (TypeError, ValueError):
        raise InputError("score must be a number")
    if not 0 <= score <= 100:
        raise InputError("score must be between 0 and 100")

    if crud.get_quiz(db, qid) is None:
        raise NotFoundError("Quiz not found")

    return _insert_result(db, qid, uid, round(score, 2), answers)


def get_user_results(db: Session, user_id) -> List[Tuple[Result, Optional[Quiz]]]:
    """Results for a user, newest first, each with its quiz (None if it is gone)."""
    uid = _require_id(user_id, "userId is required")
    results = crud.get_results_by_user(db, uid)
    return [(result, crud.get_quiz(db, result.quiz_id)) for result in results]
