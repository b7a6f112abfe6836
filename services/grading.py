"""
Grading Engine

Scores a submission against stored questions. Pure: no storage access,
same inputs always give the same outcome.

Matching rules:
  - multiple-choice → answer_text() of both sides, case-sensitive equality
  - anything else   → both strings, trimmed, case-insensitive equality
A question without a stored answer is never matched.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, List

from database.models import QuestionType
from database.schemas import AnswerRecord, SubmittedAnswer

SCORE_DECIMALS = 2


def answer_text(value: Any) -> str:
    """
    Canonical text form of an option or answer.

    Used when storing provider options/answers and when comparing a submitted
    multiple-choice answer, so both sides agree: booleans are "true"/"false",
    whole-number floats drop their ".0", containers are JSON, strings are trimmed.
    """
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


@dataclass
class GradeOutcome:
    score: float = 0.0
    details: List[AnswerRecord] = field(default_factory=list)

    @property
    def correct_count(self) -> int:
        return sum(1 for record in self.details if record.is_correct)


def is_correct(question_type: Any, submitted: Any, correct: Any) -> bool:
    """Correctness of one answer under the rules of the question's type."""
    if correct is None or submitted is None:
        return False
    if question_type == QuestionType.MULTIPLE_CHOICE:
        return answer_text(submitted) == answer_text(correct)
    if isinstance(submitted, str) and isinstance(correct, str):
        return submitted.strip().lower() == correct.strip().lower()
    return False


def grade(questions: Iterable[Any], answers: Iterable[SubmittedAnswer]) -> GradeOutcome:
    """
    Grade submitted answers.

    Args:
        questions: Objects with id, type and correct_answer (ORM rows work)
        answers:   Submitted answers, in the order the client sent them

    Returns:
        GradeOutcome; answers to unknown question ids are left out of both
        the score denominator and the details
    """
    by_id = {q.id: q for q in questions}

    details = []
    for submitted in answers:
        question = by_id.get(submitted.question_id)
        if question is None:
            continue
        details.append(AnswerRecord(
            question_id=submitted.question_id,
            answer=submitted.answer,
            is_correct=is_correct(question.type, submitted.answer, question.correct_answer),
        ))

    if not details:
        return GradeOutcome(score=0, details=[])

    correct = sum(1 for record in details if record.is_correct)
    score = round(correct / len(details) * 100, SCORE_DECIMALS)
    return GradeOutcome(score=score, details=details)
