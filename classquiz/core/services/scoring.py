"""Service for grading completed quiz attempts."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
import logging

from classquiz.core.errors import AttemptNotFoundError, QuizNotFoundError
from classquiz.core.models import QuestionDetail, ScoreResult, StudentResponse
from classquiz.core.services.entity_store import EntityStore
from classquiz.core.services.quiz_reader import QuizReader
from classquiz.core.services.response_recorder import latest_responses

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (12.5 -> 13)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return round_half_up(part / whole * 100)


def is_correct_answer(question: QuestionDetail, response: StudentResponse | None) -> bool:
    """True when the response picked a correct alternative of this question."""
    if response is None or response.alternative_id is None:
        return False
    selected = next(
        (alt for alt in question.alternatives if alt.id == response.alternative_id),
        None,
    )
    return selected is not None and selected.correct


class ScoringService:
    """Computes the percentage score of an attempt and marks it completed."""

    def __init__(self, store: EntityStore, reader: QuizReader) -> None:
        self._store = store
        self._reader = reader

    def grade(self, student_id: int, quiz_id: int) -> ScoreResult:
        """Score the student's latest answer per question without persisting anything."""
        detail = self._reader.get_detail(quiz_id)
        if detail is None:
            raise QuizNotFoundError(quiz_id)

        latest = latest_responses(self._store.list_student_responses(student_id, quiz_id))
        correct_answers = sum(
            1 for question in detail.questions if is_correct_answer(question, latest.get(question.question.id))
        )
        total_questions = len(detail.questions)
        return ScoreResult(
            correct_answers=correct_answers,
            total_questions=total_questions,
            score=percentage(correct_answers, total_questions),
        )

    def complete_attempt(self, student_id: int, quiz_id: int) -> ScoreResult:
        """Grade the attempt and store the score.

        Completing twice recomputes the score and overwrites ``completed_at``.
        """
        if self._store.get_quiz(quiz_id) is None:
            raise QuizNotFoundError(quiz_id)
        attempt = self._store.find_student_quiz(student_id, quiz_id)
        if attempt is None:
            raise AttemptNotFoundError(student_id, quiz_id)

        result = self.grade(student_id, quiz_id)
        self._store.complete_student_quiz(attempt.id, result.score)
        logger.info(
            "Student %s completed quiz %s: %s/%s (%s%%)",
            student_id,
            quiz_id,
            result.correct_answers,
            result.total_questions,
            result.score,
        )
        return result
