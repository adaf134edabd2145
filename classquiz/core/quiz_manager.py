"""Business logic facade shared by the API server and the startup script."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
import logging
import random
from threading import Lock

from classquiz.core import quiz_importer
from classquiz.core.errors import (
    AttemptNotFoundError,
    NoQuestionsAvailableError,
    QuestionNotFoundError,
    QuizNotFoundError,
    StudentNotFoundError,
    ValidationError,
)
from classquiz.core.markdown_renderer import MarkdownRenderer, renderer as default_renderer
from classquiz.core.models import (
    Alternative,
    AttemptDetail,
    ImportResult,
    Question,
    Quiz,
    QuizDetail,
    QuizStatistics,
    ScoreResult,
    Student,
    StudentQuiz,
    StudentResponse,
)
from classquiz.core.seed_loader import QuestionBankLoader, SeedSummary
from classquiz.core.services.entity_store import EntityStore, InMemoryEntityStore
from classquiz.core.services.quiz_assembly import QuizAssembler
from classquiz.core.services.quiz_reader import QuizReader
from classquiz.core.services.response_recorder import ResponseRecorder, latest_responses
from classquiz.core.services.scoring import ScoringService
from classquiz.core.services.statistics import StatisticsService

logger = logging.getLogger(__name__)


class QuizManager:
    """Facade for quiz services: store, assembly, responses, scoring and statistics.

    Calls are serialized with a lock. With the in-memory store this also makes
    the lookup-then-create in :meth:`start_attempt` safe inside one process; a
    store shared between processes would not get that guarantee.
    """

    def __init__(
        self,
        store: EntityStore | None = None,
        rng: random.Random | None = None,
        renderer: MarkdownRenderer | None = default_renderer,
    ) -> None:
        self._lock = Lock()

        self._store = store or InMemoryEntityStore()
        if not self._store.is_open:
            self._store.open()

        # Services
        self._reader = QuizReader(self._store, renderer)
        self._assembler = QuizAssembler(self._store, rng)
        self._recorder = ResponseRecorder(self._store)
        self._scoring = ScoringService(self._store, self._reader)
        self._statistics = StatisticsService(self._store, self._reader)

    def close(self) -> None:
        with self._lock:
            self._store.close()

    # --- Seeding and import ---

    def load_seed(self, loader: QuestionBankLoader) -> SeedSummary:
        with self._lock:
            return loader.load(self._store)

    def import_questions(self, rows: Iterable[Mapping[str, object]]) -> ImportResult:
        with self._lock:
            return quiz_importer.import_questions(self._store, rows)

    def import_alternatives(self, rows: Iterable[Mapping[str, object]]) -> ImportResult:
        with self._lock:
            return quiz_importer.import_alternatives(self._store, rows)

    # --- Question bank ---

    def list_questions(self) -> list[Question]:
        with self._lock:
            return self._store.list_questions()

    def list_questions_by_category(self, category: str) -> list[Question]:
        with self._lock:
            return self._store.list_questions_by_category(category)

    def get_alternatives(self, question_id: int) -> list[Alternative]:
        with self._lock:
            if self._store.get_question(question_id) is None:
                raise QuestionNotFoundError(question_id)
            return self._store.list_alternatives(question_id)

    # --- Quizzes ---

    def create_quiz(self, title: str, instructor_id: int, turma: str, question_count: int) -> Quiz:
        title = _require_text(title, "title")
        turma = _require_text(turma, "turma")
        instructor_id = _require_positive_int(instructor_id, "instructorId")
        question_count = _require_positive_int(question_count, "questionCount")

        with self._lock:
            # Checked up front so an empty bank never leaves an empty quiz behind.
            if not self._assembler.has_questions():
                raise NoQuestionsAvailableError()
            quiz = self._store.create_quiz(title, instructor_id, turma, question_count)
            question_ids = self._assembler.assemble_quiz(quiz, question_count)
            logger.info(
                "Created quiz %s '%s' for turma %s with %s questions",
                quiz.id,
                quiz.title,
                quiz.turma,
                len(question_ids),
            )
            return quiz

    def get_quiz_detail(self, quiz_id: int) -> QuizDetail:
        with self._lock:
            detail = self._reader.get_detail(quiz_id)
        if detail is None:
            raise QuizNotFoundError(quiz_id)
        return detail

    def set_quiz_active(self, quiz_id: int, active: bool) -> Quiz:
        if not isinstance(active, bool):
            raise ValidationError("Active status must be a boolean", field="active")
        with self._lock:
            quiz = self._store.update_quiz_active(quiz_id, active)
        if quiz is None:
            raise QuizNotFoundError(quiz_id)
        return quiz

    def list_instructor_quizzes(self, instructor_id: int) -> list[Quiz]:
        with self._lock:
            return self._store.list_quizzes_by_instructor(instructor_id)

    def list_turma_quizzes(self, turma: str, active_only: bool = False) -> list[Quiz]:
        with self._lock:
            quizzes = self._store.list_quizzes_by_turma(turma)
        if active_only:
            quizzes = [quiz for quiz in quizzes if quiz.active]
        return quizzes

    # --- Students ---

    def create_student(self, name: str, turma: str) -> Student:
        name = _require_text(name, "name")
        turma = _require_text(turma, "turma")
        with self._lock:
            return self._store.create_student(name, turma)

    def get_student(self, student_id: int) -> Student:
        with self._lock:
            student = self._store.get_student(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        return student

    def list_students_by_turma(self, turma: str) -> list[Student]:
        with self._lock:
            return self._store.list_students_by_turma(turma)

    def list_student_attempts(self, student_id: int) -> list[StudentQuiz]:
        with self._lock:
            return self._store.list_student_quizzes(student_id)

    # --- Attempts ---

    def start_attempt(self, student_id: int, quiz_id: int) -> tuple[StudentQuiz, bool]:
        """Return the student's attempt for the quiz, creating it on first call."""
        with self._lock:
            self._require_student_and_quiz(student_id, quiz_id)
            return self._recorder.start_attempt(student_id, quiz_id)

    def record_response(
        self,
        student_id: int,
        quiz_id: int,
        question_id: int,
        alternative_id: int | None,
    ) -> StudentResponse:
        question_id = _require_positive_int(question_id, "questionId")
        if alternative_id is not None:
            alternative_id = _require_positive_int(alternative_id, "alternativeId")
        with self._lock:
            return self._recorder.record_response(student_id, quiz_id, question_id, alternative_id)

    def complete_attempt(self, student_id: int, quiz_id: int) -> ScoreResult:
        with self._lock:
            return self._scoring.complete_attempt(student_id, quiz_id)

    def complete_attempt_with_detail(
        self, student_id: int, quiz_id: int
    ) -> tuple[ScoreResult, AttemptDetail]:
        """Score the attempt and read it back from the same snapshot of responses."""
        with self._lock:
            result = self._scoring.complete_attempt(student_id, quiz_id)
            return result, self._attempt_detail(student_id, quiz_id)

    def get_attempt_with_responses(self, student_id: int, quiz_id: int) -> AttemptDetail:
        with self._lock:
            return self._attempt_detail(student_id, quiz_id)

    # --- Statistics ---

    def get_quiz_statistics(self, quiz_id: int) -> QuizStatistics:
        with self._lock:
            return self._statistics.get_quiz_statistics(quiz_id)

    def _attempt_detail(self, student_id: int, quiz_id: int) -> AttemptDetail:
        attempt = self._store.find_student_quiz(student_id, quiz_id)
        if attempt is None:
            raise AttemptNotFoundError(student_id, quiz_id)
        detail = self._reader.get_detail(quiz_id)
        if detail is None:
            raise QuizNotFoundError(quiz_id)
        latest = latest_responses(self._recorder.get_responses(student_id, quiz_id))

        questions = []
        for question in detail.questions:
            response = latest.get(question.question.id)
            questions.append(
                replace(
                    question,
                    selected_alternative_id=response.alternative_id if response else None,
                )
            )
        return AttemptDetail(attempt=attempt, quiz=QuizDetail(quiz=detail.quiz, questions=questions))

    def _require_student_and_quiz(self, student_id: int, quiz_id: int) -> None:
        if self._store.get_student(student_id) is None:
            raise StudentNotFoundError(student_id)
        if self._store.get_quiz(quiz_id) is None:
            raise QuizNotFoundError(quiz_id)


def _require_text(value: object, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required.", field=field)
    return value.strip()


def _require_positive_int(value: object, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer.", field=field)
    if value < 1:
        raise ValidationError(f"{field} must be a positive integer.", field=field)
    return value
