"""Bulk import of questions and alternatives from CSV uploads.

Question CSV columns::

    code,category,enunciado,imagePath
    Q001,Geography,What is the capital of the Cayman Islands?,

Alternative CSV columns (``correct`` accepts 1/0, true/false, yes/no, sim/não)::

    questionId,letter,texto,correct
    1561,a,Option 1,0
    1561,b,Option 2,1

Each row is imported on its own. A row that fails validation is skipped and
reported in the result; it never aborts the rest of the batch.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable, Mapping

from classquiz.constants.quiz_constants import FALSY_TOKENS, TRUTHY_TOKENS
from classquiz.core.errors import ValidationError
from classquiz.core.models import ImportResult, RowError
from classquiz.core.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

Row = Mapping[str, object]


class QuizImportError(ValidationError):
    """Raised when a CSV document cannot be read at all."""


def parse_csv_rows(text: str) -> list[dict[str, str]]:
    """Read CSV text into dicts keyed by the stripped header names."""
    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.DictReader(io.StringIO(text))
    rows: list[dict[str, str]] = []
    try:
        if not reader.fieldnames:
            raise QuizImportError("CSV file is empty or has no header row.")
        for raw in reader:
            row = {
                (key or "").strip(): (value or "").strip() if isinstance(value, str) else ""
                for key, value in raw.items()
                if key is not None
            }
            if any(row.values()):
                rows.append(row)
    except csv.Error as exc:
        raise QuizImportError(f"Malformed CSV: {exc}") from exc
    return rows


def import_questions(store: EntityStore, rows: Iterable[Row]) -> ImportResult:
    rows = list(rows)
    errors: list[RowError] = []
    imported = 0
    for row_number, row in enumerate(rows, start=1):
        try:
            category = _required_text(row, "category")
            enunciado = _required_text(row, "enunciado")
        except ValidationError as exc:
            errors.append(RowError(row_number=row_number, message=exc.message))
            logger.warning("Skipping question row %s: %s", row_number, exc.message)
            continue
        store.create_question(
            category=category,
            enunciado=enunciado,
            code=_optional_text(row, "code"),
            image_path=_optional_text(row, "imagePath"),
        )
        imported += 1

    logger.info("Imported %s of %s question rows", imported, len(rows))
    return ImportResult(imported_count=imported, total_count=len(rows), errors=errors)


def import_alternatives(store: EntityStore, rows: Iterable[Row]) -> ImportResult:
    rows = list(rows)
    errors: list[RowError] = []
    imported = 0
    for row_number, row in enumerate(rows, start=1):
        try:
            question_id = _parse_question_id(row.get("questionId"))
            if store.get_question(question_id) is None:
                raise ValidationError(f"Question {question_id} does not exist.", field="questionId")
            letter = _required_text(row, "letter").upper()
            if len(letter) != 1:
                raise ValidationError("letter must be a single character.", field="letter")
            texto = _required_text(row, "texto")
            correct = _parse_bool(row.get("correct"))
        except ValidationError as exc:
            errors.append(RowError(row_number=row_number, message=exc.message))
            logger.warning("Skipping alternative row %s: %s", row_number, exc.message)
            continue
        store.create_alternative(question_id=question_id, letter=letter, texto=texto, correct=correct)
        imported += 1

    logger.info("Imported %s of %s alternative rows", imported, len(rows))
    return ImportResult(imported_count=imported, total_count=len(rows), errors=errors)


def _required_text(row: Row, key: str) -> str:
    value = row.get(key)
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationError(f"{key} is required.", field=key)
    return text


def _optional_text(row: Row, key: str) -> str | None:
    value = row.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_question_id(value: object) -> int:
    if isinstance(value, bool):
        raise ValidationError("questionId must be an integer.", field="questionId")
    if isinstance(value, int):
        parsed = value
    else:
        raw = str(value).strip() if value is not None else ""
        if not raw:
            raise ValidationError("questionId is required.", field="questionId")
        try:
            parsed = int(raw)
        except ValueError as exc:
            raise ValidationError(f"questionId '{raw}' is not an integer.", field="questionId") from exc
    if parsed <= 0:
        raise ValidationError("questionId must be positive.", field="questionId")
    return parsed


def _parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    token = str(value).strip().lower() if value is not None else ""
    if token in TRUTHY_TOKENS:
        return True
    if token in FALSY_TOKENS:
        return False
    raise ValidationError(f"correct value '{value}' is not a boolean.", field="correct")
