"""Read-side helper that joins a quiz with its ordered questions and alternatives."""

from __future__ import annotations

from classquiz.core.markdown_renderer import MarkdownRenderer
from classquiz.core.models import QuestionDetail, QuizDetail
from classquiz.core.services.entity_store import EntityStore


class QuizReader:
    def __init__(self, store: EntityStore, renderer: MarkdownRenderer | None = None) -> None:
        self._store = store
        self._renderer = renderer

    def get_detail(self, quiz_id: int) -> QuizDetail | None:
        """Return the quiz with its questions sorted by order, or None if unknown.

        Links pointing at a question that no longer resolves are skipped.
        """
        quiz = self._store.get_quiz(quiz_id)
        if quiz is None:
            return None

        questions: list[QuestionDetail] = []
        for link in self._store.list_quiz_questions(quiz_id):
            question = self._store.get_question(link.question_id)
            if question is None:
                continue
            html = self._renderer.render_fragment(question.enunciado) if self._renderer else ""
            questions.append(
                QuestionDetail(
                    question=question,
                    order=link.order,
                    alternatives=self._store.list_alternatives(question.id),
                    enunciado_html=html,
                )
            )
        questions.sort(key=lambda detail: detail.order)
        return QuizDetail(quiz=quiz, questions=questions)
