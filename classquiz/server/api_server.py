"""FastAPI server that exposes instructor and student endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import Depends, FastAPI, File, Request, Response, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, StrictBool
import uvicorn

from classquiz.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from classquiz.constants.network_constants import API_PREFIX, DEFAULT_HOST, DEFAULT_PORT
from classquiz.core.errors import (
    InternalError,
    NoQuestionsAvailableError,
    NotFoundError,
    ValidationError,
)
from classquiz.core.models import (
    Alternative,
    AttemptDetail,
    ImportResult,
    QuestionDetail,
    Question,
    Quiz,
    QuizDetail,
    QuizStatistics,
    Student,
    StudentQuiz,
    StudentResponse,
)
from classquiz.core.quiz_importer import parse_csv_rows
from classquiz.core.quiz_manager import QuizManager

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class QuizCreatePayload(_CamelModel):
    """Payload schema for quiz creation."""

    title: str
    instructor_id: int = Field(alias="instructorId")
    turma: str
    question_count: int = Field(alias="questionCount")


class QuizStatusPayload(BaseModel):
    active: StrictBool


class StudentPayload(BaseModel):
    name: str
    turma: str


class ResponsePayload(_CamelModel):
    """Payload schema for a submitted answer."""

    question_id: int = Field(alias="questionId")
    alternative_id: int | None = Field(default=None, alias="alternativeId")


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc).isoformat()
    return value.astimezone(timezone.utc).isoformat()


def _question_to_dict(question: Question) -> dict[str, object]:
    return {
        "id": question.id,
        "code": question.code,
        "category": question.category,
        "enunciado": question.enunciado,
        "imagePath": question.image_path,
    }


def _alternative_to_dict(alternative: Alternative) -> dict[str, object]:
    return {
        "id": alternative.id,
        "questionId": alternative.question_id,
        "letter": alternative.letter,
        "texto": alternative.texto,
        "correct": alternative.correct,
    }


def _quiz_to_dict(quiz: Quiz) -> dict[str, object]:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "instructorId": quiz.instructor_id,
        "turma": quiz.turma,
        "questionCount": quiz.question_count,
        "createdAt": _iso(quiz.created_at),
        "active": quiz.active,
    }


def _question_detail_to_dict(detail: QuestionDetail, with_selection: bool) -> dict[str, object]:
    payload = _question_to_dict(detail.question)
    payload["enunciadoHtml"] = detail.enunciado_html
    payload["order"] = detail.order
    payload["alternatives"] = [_alternative_to_dict(alt) for alt in detail.alternatives]
    if with_selection:
        payload["selectedAlternativeId"] = detail.selected_alternative_id
    return payload


def _quiz_detail_to_dict(detail: QuizDetail, with_selection: bool = False) -> dict[str, object]:
    payload = _quiz_to_dict(detail.quiz)
    payload["questions"] = [_question_detail_to_dict(q, with_selection) for q in detail.questions]
    return payload


def _student_to_dict(student: Student) -> dict[str, object]:
    return {"id": student.id, "name": student.name, "turma": student.turma}


def _attempt_to_dict(attempt: StudentQuiz) -> dict[str, object]:
    return {
        "id": attempt.id,
        "studentId": attempt.student_id,
        "quizId": attempt.quiz_id,
        "score": attempt.score,
        "completed": attempt.completed,
        "startedAt": _iso(attempt.started_at),
        "completedAt": _iso(attempt.completed_at),
    }


def _attempt_detail_to_dict(detail: AttemptDetail) -> dict[str, object]:
    payload = _attempt_to_dict(detail.attempt)
    payload["quiz"] = _quiz_detail_to_dict(detail.quiz, with_selection=True)
    return payload


def _response_to_dict(response: StudentResponse) -> dict[str, object]:
    return {
        "id": response.id,
        "studentId": response.student_id,
        "quizId": response.quiz_id,
        "questionId": response.question_id,
        "alternativeId": response.alternative_id,
        "submittedAt": _iso(response.submitted_at),
    }


def _statistics_to_dict(stats: QuizStatistics) -> dict[str, object]:
    return {
        "id": stats.quiz_id,
        "title": stats.title,
        "turma": stats.turma,
        "totalStudents": stats.total_students,
        "averageScore": stats.average_score,
        "categoriesStats": [
            {
                "category": entry.category,
                "correct": entry.correct,
                "total": entry.total,
                "percentage": entry.percentage,
            }
            for entry in stats.categories_stats
        ],
    }


def _import_result_to_dict(result: ImportResult) -> dict[str, object]:
    return {
        "importedCount": result.imported_count,
        "totalCount": result.total_count,
        "errors": [{"row": err.row_number, "message": err.message} for err in result.errors],
    }


def _read_csv_upload(file: UploadFile | None) -> list[dict[str, str]]:
    if file is None:
        raise ValidationError("No file uploaded", field="file")
    raw = file.file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError("CSV file must be UTF-8 encoded", field="file") from exc
    return parse_csv_rows(text)


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": exc.message, "field": exc.field})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(NoQuestionsAvailableError)
    async def handle_no_questions(request: Request, exc: NoQuestionsAvailableError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": str(exc)})

    @app.exception_handler(InternalError)
    async def handle_internal_error(request: Request, exc: InternalError) -> JSONResponse:
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)
    _register_error_handlers(app)

    @app.get("/")
    def health_check() -> dict[str, object]:
        return {"status": "ok", "service": APP_NAME, "version": APP_VERSION}

    # --- Question bank ---

    @app.get(f"{API_PREFIX}/questions")
    def list_questions(
        category: str | None = None,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        if category:
            questions = manager.list_questions_by_category(category)
        else:
            questions = manager.list_questions()
        return [_question_to_dict(q) for q in questions]

    @app.get(f"{API_PREFIX}/questions/{{question_id}}/alternatives")
    def get_alternatives(
        question_id: int,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_alternative_to_dict(a) for a in manager.get_alternatives(question_id)]

    @app.post(f"{API_PREFIX}/import/questions")
    def import_questions(
        file: UploadFile | None = File(None),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        rows = _read_csv_upload(file)
        return _import_result_to_dict(manager.import_questions(rows))

    @app.post(f"{API_PREFIX}/import/alternatives")
    def import_alternatives(
        file: UploadFile | None = File(None),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        rows = _read_csv_upload(file)
        return _import_result_to_dict(manager.import_alternatives(rows))

    # --- Instructor ---

    @app.get(f"{API_PREFIX}/instructor/{{instructor_id}}/quizzes")
    def list_instructor_quizzes(
        instructor_id: int,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_quiz_to_dict(q) for q in manager.list_instructor_quizzes(instructor_id)]

    @app.post(f"{API_PREFIX}/quizzes", status_code=201)
    def create_quiz(
        payload: QuizCreatePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        quiz = manager.create_quiz(
            title=payload.title,
            instructor_id=payload.instructor_id,
            turma=payload.turma,
            question_count=payload.question_count,
        )
        return _quiz_to_dict(quiz)

    @app.get(f"{API_PREFIX}/quizzes/{{quiz_id}}")
    def get_quiz(
        quiz_id: int,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _quiz_detail_to_dict(manager.get_quiz_detail(quiz_id))

    @app.get(f"{API_PREFIX}/quizzes/{{quiz_id}}/statistics")
    def get_quiz_statistics(
        quiz_id: int,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _statistics_to_dict(manager.get_quiz_statistics(quiz_id))

    @app.patch(f"{API_PREFIX}/quizzes/{{quiz_id}}/status")
    def set_quiz_status(
        quiz_id: int,
        payload: QuizStatusPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _quiz_to_dict(manager.set_quiz_active(quiz_id, payload.active))

    @app.get(f"{API_PREFIX}/turmas/{{turma}}/quizzes")
    def list_turma_quizzes(
        turma: str,
        active_only: bool = False,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_quiz_to_dict(q) for q in manager.list_turma_quizzes(turma, active_only=active_only)]

    # --- Students ---

    @app.post(f"{API_PREFIX}/students", status_code=201)
    def create_student(
        payload: StudentPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _student_to_dict(manager.create_student(payload.name, payload.turma))

    @app.get(f"{API_PREFIX}/turmas/{{turma}}/students")
    def list_turma_students(
        turma: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_student_to_dict(s) for s in manager.list_students_by_turma(turma)]

    @app.get(f"{API_PREFIX}/students/{{student_id}}")
    def get_student(
        student_id: int,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _student_to_dict(manager.get_student(student_id))

    @app.get(f"{API_PREFIX}/students/{{student_id}}/quizzes")
    def list_student_attempts(
        student_id: int,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> list[dict[str, object]]:
        return [_attempt_to_dict(a) for a in manager.list_student_attempts(student_id)]

    @app.post(f"{API_PREFIX}/students/{{student_id}}/quizzes/{{quiz_id}}/start")
    def start_quiz(
        student_id: int,
        quiz_id: int,
        response: Response,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        attempt, created = manager.start_attempt(student_id, quiz_id)
        response.status_code = 201 if created else 200
        return _attempt_to_dict(attempt)

    @app.post(f"{API_PREFIX}/students/{{student_id}}/quizzes/{{quiz_id}}/responses", status_code=201)
    def submit_response(
        student_id: int,
        quiz_id: int,
        payload: ResponsePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        submitted = manager.record_response(
            student_id,
            quiz_id,
            payload.question_id,
            payload.alternative_id,
        )
        return _response_to_dict(submitted)

    @app.post(f"{API_PREFIX}/students/{{student_id}}/quizzes/{{quiz_id}}/complete")
    def complete_quiz(
        student_id: int,
        quiz_id: int,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        result, detail = manager.complete_attempt_with_detail(student_id, quiz_id)
        payload = _attempt_detail_to_dict(detail)
        payload["correctAnswers"] = result.correct_answers
        payload["totalQuestions"] = result.total_questions
        payload["score"] = result.score
        return payload

    @app.get(f"{API_PREFIX}/students/{{student_id}}/quizzes/{{quiz_id}}")
    def get_student_quiz(
        student_id: int,
        quiz_id: int,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        return _attempt_detail_to_dict(manager.get_attempt_with_responses(student_id, quiz_id))

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(quiz_manager)
    uvicorn.run(app, host=host, port=port, log_level=log_level)
