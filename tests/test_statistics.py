from __future__ import annotations

import pytest

from classquiz.core.errors import InternalError, QuizNotFoundError
from classquiz.core.services.quiz_reader import QuizReader
from classquiz.core.services.statistics import StatisticsService

from conftest import add_question, alternative_id


def _stats_by_category(stats):
    return {entry.category: entry for entry in stats.categories_stats}


def test_incomplete_attempts_are_excluded(manager, store):
    add_question(store)
    quiz = manager.create_quiz("Prova", 1, "3A", 1)
    students = [manager.create_student(name, "3A") for name in ("Ana", "Bia", "Caio")]
    attempts = [manager.start_attempt(s.id, quiz.id)[0] for s in students]
    store.complete_student_quiz(attempts[0].id, 80)
    store.complete_student_quiz(attempts[1].id, 60)

    stats = manager.get_quiz_statistics(quiz.id)

    assert stats.total_students == 2
    assert stats.average_score == 70


def test_no_completed_attempts(manager, store):
    add_question(store)
    quiz = manager.create_quiz("Prova", 1, "3A", 1)
    student = manager.create_student("Ana", "3A")
    manager.start_attempt(student.id, quiz.id)

    stats = manager.get_quiz_statistics(quiz.id)

    assert stats.total_students == 0
    assert stats.average_score == 0
    assert stats.title == "Prova"
    assert stats.turma == "3A"


def test_category_totals_follow_quiz_questions(manager, store):
    add_question(store, category="Geografia")
    add_question(store, category="Geografia")
    add_question(store, category="História")
    quiz = manager.create_quiz("Prova", 1, "3A", 3)

    stats = _stats_by_category(manager.get_quiz_statistics(quiz.id))

    assert set(stats) == {"Geografia", "História"}
    assert stats["Geografia"].total == 2
    assert stats["História"].total == 1
    assert all(entry.correct == 0 and entry.percentage == 0 for entry in stats.values())


def test_correct_tally_counts_every_response_row(manager, store):
    geo1 = add_question(store, category="Geografia", correct_letter="A")
    geo2 = add_question(store, category="Geografia", correct_letter="B")
    hist = add_question(store, category="História", correct_letter="C")
    quiz = manager.create_quiz("Prova", 1, "3A", 3)
    ana = manager.create_student("Ana", "3A")
    bia = manager.create_student("Bia", "3A")
    manager.start_attempt(ana.id, quiz.id)
    manager.start_attempt(bia.id, quiz.id)

    # Ana finishes with both geography questions right and history wrong.
    manager.record_response(ana.id, quiz.id, geo1.id, alternative_id(store, geo1.id, "A"))
    manager.record_response(ana.id, quiz.id, geo2.id, alternative_id(store, geo2.id, "B"))
    manager.record_response(ana.id, quiz.id, hist.id, alternative_id(store, hist.id, "D"))
    manager.complete_attempt(ana.id, quiz.id)

    # Bia never completes and answers geo1 correctly twice.
    manager.record_response(bia.id, quiz.id, geo1.id, alternative_id(store, geo1.id, "A"))
    manager.record_response(bia.id, quiz.id, geo1.id, alternative_id(store, geo1.id, "A"))

    stats = manager.get_quiz_statistics(quiz.id)
    by_category = _stats_by_category(stats)

    assert stats.total_students == 1
    assert stats.average_score == 67
    assert (by_category["Geografia"].correct, by_category["Geografia"].total) == (4, 2)
    assert by_category["Geografia"].percentage == 200
    assert (by_category["História"].correct, by_category["História"].percentage) == (0, 0)


def test_responses_to_other_quizzes_or_questions_are_ignored(manager, store):
    question = add_question(store, category="Geografia", correct_letter="A")
    quiz = manager.create_quiz("Prova", 1, "3A", 1)
    other_quiz = manager.create_quiz("Outra", 1, "3A", 1)
    outsider = add_question(store, category="Geografia", correct_letter="A")
    correct_id = alternative_id(store, question.id, "A")

    manager.record_response(1, other_quiz.id, question.id, correct_id)
    manager.record_response(1, quiz.id, outsider.id, alternative_id(store, outsider.id, "A"))
    manager.record_response(1, quiz.id, question.id, alternative_id(store, outsider.id, "A"))

    stats = _stats_by_category(manager.get_quiz_statistics(quiz.id))
    assert stats["Geografia"].correct == 0


def test_missing_quiz(manager):
    with pytest.raises(QuizNotFoundError):
        manager.get_quiz_statistics(42)


def test_unexpected_failures_become_internal_errors(store):
    class BrokenReader(QuizReader):
        def get_detail(self, quiz_id):
            raise KeyError(quiz_id)

    service = StatisticsService(store, BrokenReader(store))

    with pytest.raises(InternalError):
        service.get_quiz_statistics(1)
