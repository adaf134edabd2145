from __future__ import annotations

import pytest

from classquiz.core.errors import QuestionNotFoundError, QuizNotFoundError, StoreClosedError
from classquiz.core.models import Alternative, Question
from classquiz.core.services.entity_store import InMemoryEntityStore


def test_ids_are_assigned_per_kind(store):
    q1 = store.create_question(category="Geografia", enunciado="One")
    q2 = store.create_question(category="História", enunciado="Two")
    student = store.create_student("Ana", "3A")
    quiz = store.create_quiz("Prova", 1, "3A", 2)

    assert (q1.id, q2.id) == (1, 2)
    assert student.id == 1
    assert quiz.id == 1
    assert quiz.active is True
    assert quiz.question_count == 2


def test_insert_question_moves_counter_past_preassigned_id(store):
    store.insert_question(Question(id=40, category="Cultura", enunciado="Seeded"))
    created = store.create_question(category="Cultura", enunciado="Fresh")

    assert store.get_question(40).enunciado == "Seeded"
    assert created.id == 41


def test_quiz_question_requires_existing_references(store):
    question = store.create_question(category="Geografia", enunciado="Where?")
    quiz = store.create_quiz("Prova", 1, "3A", 1)

    with pytest.raises(QuestionNotFoundError):
        store.create_quiz_question(quiz.id, 999, 1)
    with pytest.raises(QuizNotFoundError):
        store.create_quiz_question(999, question.id, 1)
    assert store.list_quiz_questions(quiz.id) == []


def test_quiz_questions_are_returned_by_order(store):
    quiz = store.create_quiz("Prova", 1, "3A", 3)
    questions = [store.create_question(category="Geografia", enunciado=str(i)) for i in range(3)]
    for order, question in zip((3, 1, 2), questions):
        store.create_quiz_question(quiz.id, question.id, order)

    assert [link.order for link in store.list_quiz_questions(quiz.id)] == [1, 2, 3]


def test_filters(store):
    store.create_quiz("A", 1, "3A", 1)
    store.create_quiz("B", 2, "3A", 1)
    store.create_quiz("C", 1, "3B", 1)
    store.create_student("Ana", "3A")
    store.create_student("Bia", "3B")
    store.create_question(category="Geografia", enunciado="x")
    store.create_question(category="Cultura", enunciado="y")

    assert [q.title for q in store.list_quizzes_by_instructor(1)] == ["A", "C"]
    assert [q.title for q in store.list_quizzes_by_turma("3A")] == ["A", "B"]
    assert [s.name for s in store.list_students_by_turma("3B")] == ["Bia"]
    assert [q.enunciado for q in store.list_questions_by_category("Cultura")] == ["y"]


def test_returned_records_are_copies(store):
    quiz = store.create_quiz("Prova", 1, "3A", 5)
    quiz.title = "Changed"
    quiz.active = False

    stored = store.get_quiz(quiz.id)
    assert stored.title == "Prova"
    assert stored.active is True


def test_alternatives_are_listed_per_question(store):
    first = store.create_question(category="Geografia", enunciado="x")
    second = store.create_question(category="Geografia", enunciado="y")
    a = store.create_alternative(first.id, "A", "one", True)
    store.create_alternative(second.id, "A", "two", False)
    b = store.create_alternative(first.id, "B", "three", False)

    assert [alt.id for alt in store.list_alternatives(first.id)] == [a.id, b.id]
    assert store.get_alternative(a.id).correct is True
    assert store.get_alternative(999) is None


def test_updates_return_none_for_unknown_ids(store):
    assert store.update_quiz_active(5, False) is None
    assert store.update_quiz_question_count(5, 2) is None
    assert store.complete_student_quiz(5, 90) is None


def test_complete_student_quiz_sets_score_and_timestamp(store):
    attempt = store.create_student_quiz(1, 1)
    assert attempt.completed is False
    assert attempt.score is None

    done = store.complete_student_quiz(attempt.id, 75)
    assert done.completed is True
    assert done.score == 75
    assert done.completed_at is not None


def test_closed_store_rejects_operations():
    store = InMemoryEntityStore()
    with pytest.raises(StoreClosedError):
        store.list_questions()

    with store:
        store.create_question(category="Geografia", enunciado="x")
        assert store.is_open
    assert not store.is_open

    store.open()
    assert store.list_questions() == []
    store.close()


def test_insert_keeps_existing_record_on_id_collision(store):
    existing = store.create_question(category="Geografia", enunciado="Original")
    store.create_alternative(existing.id, "A", "Original", True)

    clash = Question(id=existing.id, category="Cultura", enunciado="New")
    assert store.insert_question(clash) is None
    assert store.insert_alternative(Alternative(1, existing.id, "Z", "New")) is None
    assert store.get_question(existing.id).enunciado == "Original"
    assert store.get_alternative(1).texto == "Original"
