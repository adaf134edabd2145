"""Storage contract for quiz entities and its in-memory implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
import logging
from typing import Generic, TypeVar

from classquiz.core.errors import QuestionNotFoundError, QuizNotFoundError, StoreClosedError
from classquiz.core.models import (
    Alternative,
    Question,
    Quiz,
    QuizQuestion,
    Student,
    StudentQuiz,
    StudentResponse,
)

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class EntityStore(ABC):
    """Create/read/filter operations for every entity kind.

    Services only talk to this interface, so a persistent backend can replace
    the in-memory one without touching quiz logic. A store must be opened
    before use and closed when the process shuts down.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @property
    @abstractmethod
    def is_open(self) -> bool: ...

    def __enter__(self) -> "EntityStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- Questions ---

    @abstractmethod
    def create_question(
        self,
        category: str,
        enunciado: str,
        code: str | None = None,
        image_path: str | None = None,
    ) -> Question: ...

    @abstractmethod
    def insert_question(self, question: Question) -> Question | None:
        """Store a question that already carries its identifier.

        Returns ``None`` and keeps the stored record when the id is taken.
        """

    @abstractmethod
    def get_question(self, question_id: int) -> Question | None: ...

    @abstractmethod
    def list_questions(self) -> list[Question]: ...

    @abstractmethod
    def list_questions_by_category(self, category: str) -> list[Question]: ...

    # --- Alternatives ---

    @abstractmethod
    def create_alternative(
        self, question_id: int, letter: str, texto: str, correct: bool
    ) -> Alternative: ...

    @abstractmethod
    def insert_alternative(self, alternative: Alternative) -> Alternative | None:
        """Store an alternative that already carries its identifier.

        Returns ``None`` and keeps the stored record when the id is taken.
        """

    @abstractmethod
    def get_alternative(self, alternative_id: int) -> Alternative | None: ...

    @abstractmethod
    def list_alternatives(self, question_id: int) -> list[Alternative]: ...

    # --- Quizzes ---

    @abstractmethod
    def create_quiz(
        self, title: str, instructor_id: int, turma: str, question_count: int
    ) -> Quiz: ...

    @abstractmethod
    def get_quiz(self, quiz_id: int) -> Quiz | None: ...

    @abstractmethod
    def list_quizzes_by_instructor(self, instructor_id: int) -> list[Quiz]: ...

    @abstractmethod
    def list_quizzes_by_turma(self, turma: str) -> list[Quiz]: ...

    @abstractmethod
    def update_quiz_active(self, quiz_id: int, active: bool) -> Quiz | None: ...

    @abstractmethod
    def update_quiz_question_count(self, quiz_id: int, question_count: int) -> Quiz | None: ...

    @abstractmethod
    def create_quiz_question(self, quiz_id: int, question_id: int, order: int) -> QuizQuestion: ...

    @abstractmethod
    def list_quiz_questions(self, quiz_id: int) -> list[QuizQuestion]:
        """Return the quiz's question links sorted by ``order``."""

    # --- Students and attempts ---

    @abstractmethod
    def create_student(self, name: str, turma: str) -> Student: ...

    @abstractmethod
    def get_student(self, student_id: int) -> Student | None: ...

    @abstractmethod
    def list_students_by_turma(self, turma: str) -> list[Student]: ...

    @abstractmethod
    def create_student_quiz(self, student_id: int, quiz_id: int) -> StudentQuiz: ...

    @abstractmethod
    def find_student_quiz(self, student_id: int, quiz_id: int) -> StudentQuiz | None: ...

    @abstractmethod
    def list_student_quizzes(self, student_id: int) -> list[StudentQuiz]: ...

    @abstractmethod
    def list_student_quizzes_for_quiz(self, quiz_id: int) -> list[StudentQuiz]: ...

    @abstractmethod
    def complete_student_quiz(self, student_quiz_id: int, score: int) -> StudentQuiz | None: ...

    @abstractmethod
    def create_student_response(
        self,
        student_id: int,
        quiz_id: int,
        question_id: int,
        alternative_id: int | None,
    ) -> StudentResponse: ...

    @abstractmethod
    def list_student_responses(self, student_id: int, quiz_id: int) -> list[StudentResponse]:
        """Return the pair's responses in insertion order."""

    @abstractmethod
    def list_quiz_responses(self, quiz_id: int) -> list[StudentResponse]:
        """Return every response recorded for the quiz in insertion order."""


class _Table(dict[int, _T], Generic[_T]):
    """Dict of records keyed by id with its own identifier counter."""

    def __init__(self) -> None:
        super().__init__()
        self._last_id: int = 0

    def next_id(self) -> int:
        self._last_id += 1
        return self._last_id

    def reserve(self, entity_id: int) -> None:
        if entity_id > self._last_id:
            self._last_id = entity_id

    def reset(self) -> None:
        self.clear()
        self._last_id = 0


class InMemoryEntityStore(EntityStore):
    """Keeps every entity kind in a dict with a per-kind counter.

    Filters are linear scans, O(n) in the number of records of the kind
    being filtered. That is fine for classroom-sized banks and cohorts.
    Records are copied on the way in and out so callers never share state
    with the store.
    """

    def __init__(self) -> None:
        self._open: bool = False
        self._questions: _Table[Question] = _Table()
        self._alternatives: _Table[Alternative] = _Table()
        self._quizzes: _Table[Quiz] = _Table()
        self._quiz_questions: _Table[QuizQuestion] = _Table()
        self._students: _Table[Student] = _Table()
        self._student_quizzes: _Table[StudentQuiz] = _Table()
        self._responses: _Table[StudentResponse] = _Table()

    # --- Lifecycle ---

    def open(self) -> None:
        if self._open:
            return
        self._open = True
        logger.debug("In-memory entity store opened")

    def close(self) -> None:
        if not self._open:
            return
        for table in self._tables():
            table.reset()
        self._open = False
        logger.debug("In-memory entity store closed")

    @property
    def is_open(self) -> bool:
        return self._open

    def _tables(self) -> tuple[_Table, ...]:
        return (
            self._questions,
            self._alternatives,
            self._quizzes,
            self._quiz_questions,
            self._students,
            self._student_quizzes,
            self._responses,
        )

    def _require_open(self) -> None:
        if not self._open:
            raise StoreClosedError()

    # --- Questions ---

    def create_question(
        self,
        category: str,
        enunciado: str,
        code: str | None = None,
        image_path: str | None = None,
    ) -> Question:
        self._require_open()
        question = Question(
            id=self._questions.next_id(),
            category=category,
            enunciado=enunciado,
            code=code,
            image_path=image_path,
        )
        self._questions[question.id] = question
        return replace(question)

    def insert_question(self, question: Question) -> Question | None:
        self._require_open()
        if question.id in self._questions:
            logger.warning("Question id %s already exists; skipping insert", question.id)
            return None
        self._questions.reserve(question.id)
        self._questions[question.id] = replace(question)
        return replace(question)

    def get_question(self, question_id: int) -> Question | None:
        self._require_open()
        return _copy(self._questions.get(question_id))

    def list_questions(self) -> list[Question]:
        self._require_open()
        return [replace(q) for q in self._questions.values()]

    def list_questions_by_category(self, category: str) -> list[Question]:
        self._require_open()
        return [replace(q) for q in self._questions.values() if q.category == category]

    # --- Alternatives ---

    def create_alternative(
        self, question_id: int, letter: str, texto: str, correct: bool
    ) -> Alternative:
        self._require_open()
        alternative = Alternative(
            id=self._alternatives.next_id(),
            question_id=question_id,
            letter=letter,
            texto=texto,
            correct=correct,
        )
        self._alternatives[alternative.id] = alternative
        return replace(alternative)

    def insert_alternative(self, alternative: Alternative) -> Alternative | None:
        self._require_open()
        if alternative.id in self._alternatives:
            logger.warning("Alternative id %s already exists; skipping insert", alternative.id)
            return None
        self._alternatives.reserve(alternative.id)
        self._alternatives[alternative.id] = replace(alternative)
        return replace(alternative)

    def get_alternative(self, alternative_id: int) -> Alternative | None:
        self._require_open()
        return _copy(self._alternatives.get(alternative_id))

    def list_alternatives(self, question_id: int) -> list[Alternative]:
        self._require_open()
        return [replace(a) for a in self._alternatives.values() if a.question_id == question_id]

    # --- Quizzes ---

    def create_quiz(
        self, title: str, instructor_id: int, turma: str, question_count: int
    ) -> Quiz:
        self._require_open()
        quiz = Quiz(
            id=self._quizzes.next_id(),
            title=title,
            instructor_id=instructor_id,
            turma=turma,
            question_count=question_count,
            created_at=datetime.utcnow(),
            active=True,
        )
        self._quizzes[quiz.id] = quiz
        return replace(quiz)

    def get_quiz(self, quiz_id: int) -> Quiz | None:
        self._require_open()
        return _copy(self._quizzes.get(quiz_id))

    def list_quizzes_by_instructor(self, instructor_id: int) -> list[Quiz]:
        self._require_open()
        return [replace(q) for q in self._quizzes.values() if q.instructor_id == instructor_id]

    def list_quizzes_by_turma(self, turma: str) -> list[Quiz]:
        self._require_open()
        return [replace(q) for q in self._quizzes.values() if q.turma == turma]

    def update_quiz_active(self, quiz_id: int, active: bool) -> Quiz | None:
        self._require_open()
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            return None
        quiz.active = active
        return replace(quiz)

    def update_quiz_question_count(self, quiz_id: int, question_count: int) -> Quiz | None:
        self._require_open()
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            return None
        quiz.question_count = question_count
        return replace(quiz)

    def create_quiz_question(self, quiz_id: int, question_id: int, order: int) -> QuizQuestion:
        self._require_open()
        if question_id not in self._questions:
            raise QuestionNotFoundError(question_id)
        if quiz_id not in self._quizzes:
            raise QuizNotFoundError(quiz_id)
        link = QuizQuestion(
            id=self._quiz_questions.next_id(),
            quiz_id=quiz_id,
            question_id=question_id,
            order=order,
        )
        self._quiz_questions[link.id] = link
        return replace(link)

    def list_quiz_questions(self, quiz_id: int) -> list[QuizQuestion]:
        self._require_open()
        links = [replace(link) for link in self._quiz_questions.values() if link.quiz_id == quiz_id]
        return sorted(links, key=lambda link: link.order)

    # --- Students and attempts ---

    def create_student(self, name: str, turma: str) -> Student:
        self._require_open()
        student = Student(id=self._students.next_id(), name=name, turma=turma)
        self._students[student.id] = student
        return replace(student)

    def get_student(self, student_id: int) -> Student | None:
        self._require_open()
        return _copy(self._students.get(student_id))

    def list_students_by_turma(self, turma: str) -> list[Student]:
        self._require_open()
        return [replace(s) for s in self._students.values() if s.turma == turma]

    def create_student_quiz(self, student_id: int, quiz_id: int) -> StudentQuiz:
        self._require_open()
        attempt = StudentQuiz(
            id=self._student_quizzes.next_id(),
            student_id=student_id,
            quiz_id=quiz_id,
            started_at=datetime.utcnow(),
        )
        self._student_quizzes[attempt.id] = attempt
        return replace(attempt)

    def find_student_quiz(self, student_id: int, quiz_id: int) -> StudentQuiz | None:
        self._require_open()
        attempt = next(
            (
                sq
                for sq in self._student_quizzes.values()
                if sq.student_id == student_id and sq.quiz_id == quiz_id
            ),
            None,
        )
        return _copy(attempt)

    def list_student_quizzes(self, student_id: int) -> list[StudentQuiz]:
        self._require_open()
        return [replace(sq) for sq in self._student_quizzes.values() if sq.student_id == student_id]

    def list_student_quizzes_for_quiz(self, quiz_id: int) -> list[StudentQuiz]:
        self._require_open()
        return [replace(sq) for sq in self._student_quizzes.values() if sq.quiz_id == quiz_id]

    def complete_student_quiz(self, student_quiz_id: int, score: int) -> StudentQuiz | None:
        self._require_open()
        attempt = self._student_quizzes.get(student_quiz_id)
        if attempt is None:
            return None
        attempt.score = score
        attempt.completed = True
        attempt.completed_at = datetime.utcnow()
        return replace(attempt)

    def create_student_response(
        self,
        student_id: int,
        quiz_id: int,
        question_id: int,
        alternative_id: int | None,
    ) -> StudentResponse:
        self._require_open()
        response = StudentResponse(
            id=self._responses.next_id(),
            student_id=student_id,
            quiz_id=quiz_id,
            question_id=question_id,
            alternative_id=alternative_id,
            submitted_at=datetime.utcnow(),
        )
        self._responses[response.id] = response
        return replace(response)

    def list_student_responses(self, student_id: int, quiz_id: int) -> list[StudentResponse]:
        self._require_open()
        return [
            replace(r)
            for r in self._responses.values()
            if r.student_id == student_id and r.quiz_id == quiz_id
        ]

    def list_quiz_responses(self, quiz_id: int) -> list[StudentResponse]:
        self._require_open()
        return [replace(r) for r in self._responses.values() if r.quiz_id == quiz_id]


def _copy(record: _T | None) -> _T | None:
    return None if record is None else replace(record)
