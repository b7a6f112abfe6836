"""
CRUD operations for the quiz store
Read helpers and single-row inserts; multi-row writes live in services/
"""

from sqlalchemy.orm import Session
from typing import List, Optional
from database import models


# ==========================================
# QUIZ CRUD
# ==========================================

def get_quiz(db: Session, quiz_id: int) -> Optional[models.Quiz]:
    """Get quiz by ID"""
    return db.query(models.Quiz).filter(models.Quiz.id == quiz_id).first()


def get_quizzes_by_owner(db: Session, user_id: int) -> List[models.Quiz]:
    """Get all quizzes created by a user, newest first"""
    return db.query(models.Quiz).filter(
        models.Quiz.created_by == user_id
    ).order_by(models.Quiz.created_at.desc(), models.Quiz.id.desc()).all()


# ==========================================
# QUESTION CRUD
# ==========================================

def get_questions_for_quiz(db: Session, quiz_id: int) -> List[models.Question]:
    """Get the questions of a quiz in creation order"""
    return db.query(models.Question).filter(
        models.Question.quiz_id == quiz_id
    ).order_by(models.Question.position, models.Question.id).all()


# ==========================================
# RESULT CRUD
# ==========================================

def create_result(db: Session, quiz_id: int, user_id: int, score: float, answers: list) -> models.Result:
    """Insert one result row and commit"""
    db_result = models.Result(
        quiz_id=quiz_id,
        user_id=user_id,
        score=score,
        answers=answers,
    )
    db.add(db_result)
    db.commit()
    db.refresh(db_result)
    return db_result


def get_results_by_user(db: Session, user_id: int) -> List[models.Result]:
    """Get all results for a user, newest first"""
    return db.query(models.Result).filter(
        models.Result.user_id == user_id
    ).order_by(models.Result.created_at.desc(), models.Result.id.desc()).all()
