"""Startup loaders that pre-populate the question bank.

Loaders write through the same store interface as CSV import. Every loader
is best effort: a missing or unreadable source is logged and the bank simply
starts without those questions.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import sqlite3
from typing import Protocol

from classquiz.core.models import Alternative, Question
from classquiz.core.services.entity_store import EntityStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SeedSummary:
    source: str
    questions: int = 0
    alternatives: int = 0


class QuestionBankLoader(Protocol):
    def load(self, store: EntityStore) -> SeedSummary: ...


class SqliteQuestionBankLoader:
    """Loads the ``Questoes`` and ``Alternativas`` tables of a SQLite question bank.

    Rows keep their original ids so alternatives stay attached to their
    questions; the store counters move past the highest id seen.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path)

    def load(self, store: EntityStore) -> SeedSummary:
        summary = SeedSummary(source=str(self._db_path))
        if not self._db_path.exists():
            logger.info("No question bank found at %s; starting without it", self._db_path)
            return summary

        try:
            conn = sqlite3.connect(f"{self._db_path.resolve().as_uri()}?mode=ro", uri=True)
        except sqlite3.Error:
            logger.exception("Could not open question bank at %s", self._db_path)
            return summary

        conn.row_factory = sqlite3.Row
        try:
            summary.questions = self._load_questions(conn, store)
            summary.alternatives = self._load_alternatives(conn, store)
        except sqlite3.Error:
            logger.exception("Error reading question bank at %s", self._db_path)
        finally:
            conn.close()

        logger.info(
            "Loaded %s questions and %s alternatives from %s",
            summary.questions,
            summary.alternatives,
            self._db_path,
        )
        return summary

    @staticmethod
    def _load_questions(conn: sqlite3.Connection, store: EntityStore) -> int:
        count = 0
        for row in conn.execute("SELECT Id, Codigo, Categoria, Enunciado, ImagemPath FROM Questoes"):
            inserted = store.insert_question(
                Question(
                    id=int(row["Id"]),
                    code=row["Codigo"] or None,
                    category=row["Categoria"],
                    enunciado=row["Enunciado"],
                    image_path=row["ImagemPath"] or None,
                )
            )
            if inserted is not None:
                count += 1
        return count

    @staticmethod
    def _load_alternatives(conn: sqlite3.Connection, store: EntityStore) -> int:
        count = 0
        for row in conn.execute("SELECT Id, QuestaoId, Letra, Texto, Correta FROM Alternativas"):
            inserted = store.insert_alternative(
                Alternative(
                    id=int(row["Id"]),
                    question_id=int(row["QuestaoId"]),
                    letter=row["Letra"],
                    texto=row["Texto"],
                    correct=row["Correta"] == 1,
                )
            )
            if inserted is not None:
                count += 1
        return count


_SAMPLE_BANK: list[tuple[dict[str, str], list[tuple[str, str, bool]]]] = [
    (
        {
            "code": "GEO001",
            "category": "Geografia",
            "enunciado": (
                "Qual é a principal atividade econômica das Ilhas Cayman na atualidade, "
                "responsável por grande parte de sua riqueza e desenvolvimento?"
            ),
        },
        [
            ("A", "Pesca comercial e exportação de frutos do mar", False),
            ("B", "Serviços financeiros e bancários offshore", True),
            ("C", "Agricultura de exportação, principalmente cana-de-açúcar", False),
            ("D", "Extração e refino de petróleo", False),
            ("E", "Produção e exportação de têxteis", False),
        ],
    ),
    (
        {
            "code": "HIS001",
            "category": "História",
            "enunciado": "Em que ano as Ilhas Cayman foram descobertas por Cristóvão Colombo?",
        },
        [
            ("A", "1492", False),
            ("B", "1503", True),
            ("C", "1513", False),
            ("D", "1598", False),
            ("E", "1623", False),
        ],
    ),
    (
        {
            "code": "CUL001",
            "category": "Cultura",
            "enunciado": (
                "Qual é o nome do festival tradicional anual celebrado nas Ilhas Cayman "
                "em dezembro/janeiro?"
            ),
        },
        [
            ("A", "Pirates Week", False),
            ("B", "Cayman Carnival Batabano", False),
            ("C", "Cayman Islands Jazz Festival", False),
            ("D", "Cayman Cookout", True),
            ("E", "Seven Mile Beach Festival", False),
        ],
    ),
]


class SampleQuestionBankLoader:
    """Adds the built-in demo questions (one per category)."""

    def load(self, store: EntityStore) -> SeedSummary:
        summary = SeedSummary(source="sample")
        for fields, alternatives in _SAMPLE_BANK:
            question = store.create_question(
                category=fields["category"],
                enunciado=fields["enunciado"],
                code=fields["code"],
            )
            summary.questions += 1
            for letter, texto, correct in alternatives:
                store.create_alternative(question.id, letter, texto, correct)
                summary.alternatives += 1
        logger.info("Loaded %s sample questions", summary.questions)
        return summary
