"""Service for starting quiz attempts and recording student answers."""

from __future__ import annotations

import logging

from classquiz.core.models import StudentQuiz, StudentResponse
from classquiz.core.services.entity_store import EntityStore

logger = logging.getLogger(__name__)


class ResponseRecorder:
    """Tracks attempts and the append-only log of submitted answers."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def start_attempt(self, student_id: int, quiz_id: int) -> tuple[StudentQuiz, bool]:
        """Return the attempt for the pair and whether it was created just now.

        An existing attempt is returned untouched, never reset.
        """
        existing = self._store.find_student_quiz(student_id, quiz_id)
        if existing is not None:
            return existing, False

        attempt = self._store.create_student_quiz(student_id, quiz_id)
        logger.info("Student %s started quiz %s (attempt %s)", student_id, quiz_id, attempt.id)
        return attempt, True

    def record_response(
        self,
        student_id: int,
        quiz_id: int,
        question_id: int,
        alternative_id: int | None,
    ) -> StudentResponse:
        """Append a response row. Membership of question and alternative is checked at scoring."""
        return self._store.create_student_response(student_id, quiz_id, question_id, alternative_id)

    def get_responses(self, student_id: int, quiz_id: int) -> list[StudentResponse]:
        return self._store.list_student_responses(student_id, quiz_id)


def latest_responses(responses: list[StudentResponse]) -> dict[int, StudentResponse]:
    """Map question id to the most recently inserted response for it."""
    latest: dict[int, StudentResponse] = {}
    for response in sorted(responses, key=lambda r: r.id):
        latest[response.question_id] = response
    return latest
