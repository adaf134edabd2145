"""Domain models for the quiz platform."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class Question:
    """Question from the shared bank. Alternatives are stored separately."""

    id: int
    category: str
    enunciado: str
    code: str | None = None
    image_path: str | None = None


@dataclass(slots=True)
class Alternative:
    """One labelled answer option of a question."""

    id: int
    question_id: int
    letter: str
    texto: str
    correct: bool = False


@dataclass(slots=True)
class Quiz:
    """Quiz created by an instructor for a class (turma)."""

    id: int
    title: str
    instructor_id: int
    turma: str
    question_count: int
    created_at: datetime
    active: bool = True


@dataclass(slots=True)
class QuizQuestion:
    """Position of a bank question inside a quiz. ``order`` starts at 1."""

    id: int
    quiz_id: int
    question_id: int
    order: int


@dataclass(slots=True)
class Student:
    id: int
    name: str
    turma: str


@dataclass(slots=True)
class StudentQuiz:
    """A student's single attempt at a quiz."""

    id: int
    student_id: int
    quiz_id: int
    started_at: datetime
    score: int | None = None
    completed: bool = False
    completed_at: datetime | None = None


@dataclass(slots=True)
class StudentResponse:
    """An answer submitted by a student. Rows are append-only."""

    id: int
    student_id: int
    quiz_id: int
    question_id: int
    alternative_id: int | None
    submitted_at: datetime


@dataclass(slots=True)
class QuestionDetail:
    """Question as presented inside a quiz, with its alternatives and position."""

    question: Question
    order: int
    alternatives: list[Alternative]
    enunciado_html: str = ""
    selected_alternative_id: int | None = None


@dataclass(slots=True)
class QuizDetail:
    quiz: Quiz
    questions: list[QuestionDetail]


@dataclass(slots=True)
class AttemptDetail:
    """Attempt record joined with the quiz and the student's selections."""

    attempt: StudentQuiz
    quiz: QuizDetail


@dataclass(slots=True)
class ScoreResult:
    correct_answers: int
    total_questions: int
    score: int


@dataclass(slots=True)
class CategoryStats:
    category: str
    correct: int
    total: int
    percentage: int


@dataclass(slots=True)
class QuizStatistics:
    """Aggregated results of a quiz over every completed attempt."""

    quiz_id: int
    title: str
    turma: str
    total_students: int
    average_score: float
    categories_stats: list[CategoryStats]


@dataclass(slots=True)
class RowError:
    """Reason a single import row was skipped. Rows are numbered from 1."""

    row_number: int
    message: str


@dataclass(slots=True)
class ImportResult:
    imported_count: int
    total_count: int
    errors: list[RowError] = field(default_factory=list)
