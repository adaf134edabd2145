from __future__ import annotations

import inspect

import pytest
from fastapi.testclient import TestClient

from classquiz.server.api_server import create_api_app

QUESTIONS_CSV = (
    "code,category,enunciado,imagePath\n"
    "GEO1,Geografia,Qual é a capital das Ilhas Cayman?,\n"
    "HIS1,História,**Quando** as ilhas foram descobertas?,\n"
)


@pytest.fixture
def client(manager) -> TestClient:
    return TestClient(create_api_app(manager))


def _upload(client, path, text):
    return client.post(path, files={"file": ("data.csv", text.encode("utf-8"), "text/csv")})


@pytest.fixture
def seeded_client(client) -> TestClient:
    assert _upload(client, "/api/import/questions", QUESTIONS_CSV).status_code == 200
    questions = client.get("/api/questions").json()
    lines = ["questionId,letter,texto,correct"]
    for question in questions:
        lines += [f"{question['id']},a,Certa,1", f"{question['id']},b,Errada,0"]
    result = _upload(client, "/api/import/alternatives", "\n".join(lines) + "\n").json()
    assert result["importedCount"] == 4
    return client


def test_health(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_import_reports_counts(client):
    response = _upload(client, "/api/import/questions", QUESTIONS_CSV + ",,missing category,\n")

    assert response.status_code == 200
    body = response.json()
    assert body["importedCount"] == 2
    assert body["totalCount"] == 3
    assert body["errors"][0]["row"] == 3


def test_import_without_file(client):
    response = client.post("/api/import/questions")

    assert response.status_code == 400
    assert response.json()["field"] == "file"


def test_create_quiz_with_empty_bank(client):
    response = client.post(
        "/api/quizzes",
        json={"title": "Prova", "instructorId": 1, "turma": "3A", "questionCount": 2},
    )

    assert response.status_code == 400
    assert client.get("/api/instructor/1/quizzes").json() == []


def test_create_quiz_rejects_malformed_payload(seeded_client):
    response = seeded_client.post("/api/quizzes", json={"title": "Prova", "turma": "3A"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request data"


def test_quiz_flow(seeded_client):
    client = seeded_client
    created = client.post(
        "/api/quizzes",
        json={"title": "Prova", "instructorId": 1, "turma": "3A", "questionCount": 5},
    )
    assert created.status_code == 201
    quiz = created.json()
    assert quiz["questionCount"] == 2
    assert quiz["active"] is True

    detail = client.get(f"/api/quizzes/{quiz['id']}").json()
    assert [q["order"] for q in detail["questions"]] == [1, 2]
    assert all(len(q["alternatives"]) == 2 for q in detail["questions"])
    assert any("<strong>Quando</strong>" in q["enunciadoHtml"] for q in detail["questions"])

    student = client.post("/api/students", json={"name": "Ana", "turma": "3A"}).json()
    start_path = f"/api/students/{student['id']}/quizzes/{quiz['id']}/start"
    first = client.post(start_path)
    second = client.post(start_path)
    assert first.status_code == 201
    assert second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["score"] is None

    first_question, second_question = detail["questions"]
    right = next(a for a in first_question["alternatives"] if a["correct"])
    wrong = next(a for a in second_question["alternatives"] if not a["correct"])
    responses_path = f"/api/students/{student['id']}/quizzes/{quiz['id']}/responses"
    for question, alternative in ((first_question, right), (second_question, wrong)):
        answered = client.post(
            responses_path,
            json={"questionId": question["id"], "alternativeId": alternative["id"]},
        )
        assert answered.status_code == 201

    completed = client.post(f"/api/students/{student['id']}/quizzes/{quiz['id']}/complete")
    assert completed.status_code == 200
    body = completed.json()
    assert (body["correctAnswers"], body["totalQuestions"], body["score"]) == (1, 2, 50)
    assert body["completed"] is True
    selections = {q["id"]: q["selectedAlternativeId"] for q in body["quiz"]["questions"]}
    assert selections == {first_question["id"]: right["id"], second_question["id"]: wrong["id"]}

    attempt = client.get(f"/api/students/{student['id']}/quizzes/{quiz['id']}").json()
    assert attempt["score"] == 50
    assert attempt["completedAt"] is not None

    stats = client.get(f"/api/quizzes/{quiz['id']}/statistics").json()
    assert stats["totalStudents"] == 1
    assert stats["averageScore"] == 50
    by_category = {entry["category"]: entry for entry in stats["categoriesStats"]}
    assert sum(entry["correct"] for entry in by_category.values()) == 1
    assert all(entry["total"] == 1 for entry in by_category.values())


def test_quiz_status_toggle(seeded_client):
    client = seeded_client
    quiz = client.post(
        "/api/quizzes",
        json={"title": "Prova", "instructorId": 1, "turma": "3A", "questionCount": 1},
    ).json()

    rejected = client.patch(f"/api/quizzes/{quiz['id']}/status", json={"active": "no"})
    assert rejected.status_code == 400

    updated = client.patch(f"/api/quizzes/{quiz['id']}/status", json={"active": False})
    assert updated.status_code == 200
    assert updated.json()["active"] is False
    assert client.get("/api/turmas/3A/quizzes", params={"active_only": True}).json() == []
    assert len(client.get("/api/turmas/3A/quizzes").json()) == 1


def test_not_found_and_invalid_ids(seeded_client):
    client = seeded_client

    assert client.get("/api/quizzes/abc").status_code == 400
    assert client.get("/api/quizzes/999").status_code == 404
    assert client.get("/api/quizzes/999/statistics").status_code == 404
    assert client.patch("/api/quizzes/999/status", json={"active": True}).status_code == 404
    assert client.get("/api/questions/999/alternatives").status_code == 404
    assert client.post("/api/students/1/quizzes/1/start").status_code == 404
    assert client.get("/api/students/1/quizzes/1").status_code == 404


def test_complete_without_start_is_not_found(seeded_client):
    client = seeded_client
    quiz = client.post(
        "/api/quizzes",
        json={"title": "Prova", "instructorId": 1, "turma": "3A", "questionCount": 1},
    ).json()
    student = client.post("/api/students", json={"name": "Ana", "turma": "3A"}).json()

    response = client.post(f"/api/students/{student['id']}/quizzes/{quiz['id']}/complete")

    assert response.status_code == 404


def test_create_student_validation(client):
    response = client.post("/api/students", json={"name": "  ", "turma": "3A"})

    assert response.status_code == 400
    assert response.json()["field"] == "name"


def test_questions_filter_and_alternatives(seeded_client):
    geo = seeded_client.get("/api/questions", params={"category": "Geografia"}).json()

    assert [q["code"] for q in geo] == ["GEO1"]
    alternatives = seeded_client.get(f"/api/questions/{geo[0]['id']}/alternatives").json()
    assert [(a["letter"], a["correct"]) for a in alternatives] == [("A", True), ("B", False)]


def test_students_by_turma(client, manager):
    client.post("/api/students", json={"name": "Ana", "turma": "3A"})
    client.post("/api/students", json={"name": "Bia", "turma": "3B"})
    client.post("/api/students", json={"name": "Caio", "turma": "3A"})

    response = client.get("/api/turmas/3A/students")

    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Ana", "Caio"]
    assert [s.name for s in manager.list_students_by_turma("3B")] == ["Bia"]
    assert client.get("/api/turmas/9Z/students").json() == []


@pytest.mark.parametrize("path", ["/api/import/questions", "/api/import/alternatives"])
def test_import_routes_run_in_threadpool(client, path):
    endpoint = next(
        route.endpoint for route in client.app.routes if getattr(route, "path", None) == path
    )

    assert not inspect.iscoroutinefunction(endpoint)
