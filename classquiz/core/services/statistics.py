"""Service for aggregating quiz results across students."""

from __future__ import annotations

import logging

from classquiz.core.errors import InternalError, QuizAppError, QuizNotFoundError
from classquiz.core.models import CategoryStats, QuizStatistics
from classquiz.core.services.entity_store import EntityStore
from classquiz.core.services.quiz_reader import QuizReader
from classquiz.core.services.scoring import percentage

logger = logging.getLogger(__name__)


class StatisticsService:
    """Builds the instructor-facing summary of a quiz."""

    def __init__(self, store: EntityStore, reader: QuizReader) -> None:
        self._store = store
        self._reader = reader

    def get_quiz_statistics(self, quiz_id: int) -> QuizStatistics:
        try:
            return self._aggregate(quiz_id)
        except QuizAppError:
            raise
        except Exception as exc:
            logger.exception("Failed to aggregate statistics for quiz %s", quiz_id)
            raise InternalError(f"Failed to aggregate statistics for quiz {quiz_id}") from exc

    def _aggregate(self, quiz_id: int) -> QuizStatistics:
        detail = self._reader.get_detail(quiz_id)
        if detail is None:
            raise QuizNotFoundError(quiz_id)

        completed = [sq for sq in self._store.list_student_quizzes_for_quiz(quiz_id) if sq.completed]
        total_students = len(completed)
        average_score = (
            sum(sq.score or 0 for sq in completed) / total_students if total_students else 0
        )

        totals: dict[str, int] = {}
        correct: dict[str, int] = {}
        category_by_question: dict[int, str] = {}
        # correct alternative id -> owning question id
        correct_alternatives: dict[int, int] = {}
        for question in detail.questions:
            category = question.question.category
            totals[category] = totals.get(category, 0) + 1
            correct.setdefault(category, 0)
            category_by_question[question.question.id] = category
            for alt in question.alternatives:
                if alt.correct:
                    correct_alternatives[alt.id] = question.question.id

        # Every response row counts, from every student and attempt state,
        # including resubmissions: this is a tally, not a per-student rate.
        for response in self._store.list_quiz_responses(quiz_id):
            category = category_by_question.get(response.question_id)
            if category is None:
                continue
            if correct_alternatives.get(response.alternative_id) != response.question_id:
                continue
            correct[category] += 1

        categories_stats = [
            CategoryStats(
                category=category,
                correct=correct[category],
                total=total,
                percentage=percentage(correct[category], total),
            )
            for category, total in totals.items()
        ]
        return QuizStatistics(
            quiz_id=detail.quiz.id,
            title=detail.quiz.title,
            turma=detail.quiz.turma,
            total_students=total_students,
            average_score=average_score,
            categories_stats=categories_stats,
        )
