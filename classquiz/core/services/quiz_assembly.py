"""Service that fills a quiz with questions sampled from the bank."""

from __future__ import annotations

import logging
import random

from classquiz.core.errors import NoQuestionsAvailableError
from classquiz.core.models import Quiz
from classquiz.core.services.entity_store import EntityStore

logger = logging.getLogger(__name__)


class QuizAssembler:
    """Samples questions uniformly without replacement and links them to a quiz."""

    def __init__(self, store: EntityStore, rng: random.Random | None = None) -> None:
        self._store = store
        self._rng = rng or random.Random()

    def has_questions(self) -> bool:
        return bool(self._store.list_questions())

    def assemble_quiz(self, quiz: Quiz, requested_count: int) -> list[int]:
        """Link ``min(pool, requested_count)`` random questions to ``quiz``.

        Returns the selected question ids in presentation order. When the pool
        is smaller than the request, the quiz's ``question_count`` is corrected
        to the number actually assigned instead of failing.
        """
        pool = self._store.list_questions()
        if not pool:
            raise NoQuestionsAvailableError()

        actual_count = min(len(pool), requested_count)
        if actual_count != requested_count:
            logger.warning(
                "Quiz %s requested %s questions but only %s are available",
                quiz.id,
                requested_count,
                actual_count,
            )

        shuffled = list(pool)
        self._rng.shuffle(shuffled)
        selected = shuffled[:actual_count]

        # Partial quizzes are left in place if a link fails midway.
        for position, question in enumerate(selected, start=1):
            self._store.create_quiz_question(quiz.id, question.id, position)

        if quiz.question_count != actual_count:
            updated = self._store.update_quiz_question_count(quiz.id, actual_count)
            if updated is not None:
                quiz.question_count = updated.question_count

        return [question.id for question in selected]
