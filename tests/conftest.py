from __future__ import annotations

import random

import pytest

from classquiz.core.models import Question
from classquiz.core.quiz_manager import QuizManager
from classquiz.core.services.entity_store import EntityStore, InMemoryEntityStore


@pytest.fixture
def store() -> EntityStore:
    store = InMemoryEntityStore()
    store.open()
    yield store
    store.close()


@pytest.fixture
def manager(store: EntityStore) -> QuizManager:
    return QuizManager(store=store, rng=random.Random(1234))


def add_question(
    store: EntityStore,
    category: str = "Geografia",
    correct_letter: str = "A",
    letters: str = "ABCD",
) -> Question:
    """Create a question whose alternative ``correct_letter`` is the right one."""
    question = store.create_question(category=category, enunciado=f"Question about {category}")
    for letter in letters:
        store.create_alternative(question.id, letter, f"Option {letter}", letter == correct_letter)
    return question


def alternative_id(store: EntityStore, question_id: int, letter: str) -> int:
    return next(a.id for a in store.list_alternatives(question_id) if a.letter == letter)
