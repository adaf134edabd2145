"""Application entry point for the ClassQuiz server."""

from __future__ import annotations

import random

from classquiz.core.quiz_manager import QuizManager
from classquiz.core.seed_loader import SampleQuestionBankLoader, SqliteQuestionBankLoader
from classquiz.core.services.entity_store import InMemoryEntityStore
from classquiz.server.api_server import run_api_server
from classquiz.utils.logging_config import configure_logging
from classquiz.utils.settings import get_settings


def main() -> None:
    """Initialize logging, seed the question bank and serve the API."""
    settings = get_settings()
    logger = configure_logging(settings.log_level.upper())
    logger.info("Starting ClassQuiz server…")

    store = InMemoryEntityStore()
    store.open()
    quiz_manager = QuizManager(store=store, rng=random.Random(settings.random_seed))

    if settings.seed_db_path:
        quiz_manager.load_seed(SqliteQuestionBankLoader(settings.seed_db_path))
    if settings.load_sample_questions:
        quiz_manager.load_seed(SampleQuestionBankLoader())
    logger.info("Question bank holds %s questions", len(quiz_manager.list_questions()))

    try:
        run_api_server(
            quiz_manager,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    finally:
        quiz_manager.close()


if __name__ == "__main__":
    main()
