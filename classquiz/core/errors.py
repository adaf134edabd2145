"""Exception hierarchy shared by the core services and the API layer."""

from __future__ import annotations


class QuizAppError(Exception):
    """Base class for every error raised by the quiz core."""


class ValidationError(QuizAppError):
    """Raised when caller-supplied input is malformed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(QuizAppError):
    """Raised when a referenced entity does not exist."""

    entity: str = "Entity"

    def __init__(self, entity_id: int, entity: str | None = None) -> None:
        if entity is not None:
            self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{self.entity} {entity_id} not found")


class QuizNotFoundError(NotFoundError):
    entity = "Quiz"


class QuestionNotFoundError(NotFoundError):
    entity = "Question"


class StudentNotFoundError(NotFoundError):
    entity = "Student"


class AttemptNotFoundError(NotFoundError):
    """Raised when a student has not started the quiz being referenced."""

    entity = "Student quiz"

    def __init__(self, student_id: int, quiz_id: int) -> None:
        self.student_id = student_id
        self.quiz_id = quiz_id
        self.entity_id = quiz_id
        QuizAppError.__init__(self, f"Student {student_id} has not started quiz {quiz_id}")


class NoQuestionsAvailableError(QuizAppError):
    """Raised when a quiz is requested while the question bank is empty."""

    def __init__(self, message: str = "No questions available in the question bank.") -> None:
        super().__init__(message)


class InternalError(QuizAppError):
    """Raised for unexpected failures inside the core."""


class StoreClosedError(InternalError):
    """Raised when the entity store is used outside its open/close lifecycle."""

    def __init__(self) -> None:
        super().__init__("Entity store is not open.")
