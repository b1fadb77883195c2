"""
Tests for test catalogue and result submission endpoints.
"""


class TestListAndGet:
    """Tests for GET /api/tests and GET /api/tests/{id}."""

    def test_list_seeded_tests(self, client):
        response = client.get("/api/tests")

        assert response.status_code == 200
        ids = {test["id"] for test in response.json()}
        assert {"test-1", "test-2", "test-general"} <= ids

    def test_get_test_includes_answers_by_default(self, client):
        data = client.get("/api/tests/test-1").json()

        assert data["totalQuestions"] == 2
        assert data["timeLimit"] == 1800
        assert data["questions"][0]["correctAnswerIndex"] == 0

    def test_exam_mode_hides_answers(self, client):
        data = client.get("/api/tests/test-1?mode=exam").json()

        for question in data["questions"]:
            assert "correctAnswerIndex" not in question
            assert "explanation" not in question
            assert question["options"]

    def test_unknown_test(self, client):
        response = client.get("/api/tests/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Test not found", "code": "not_found"}


class TestCreate:
    """Tests for POST /api/tests."""

    payload = {
        "title": "Физика",
        "subject": "physics",
        "difficulty": "hard",
        "timeLimit": 600,
        "questions": [
            {"id": "p1", "text": "Единица силы?", "options": ["Ньютон", "Джоуль"], "correctAnswerIndex": 0},
        ],
    }

    def test_teacher_can_create(self, client, teacher_headers):
        response = client.post("/api/tests", json=self.payload, headers=teacher_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["createdBy"] == "user_teacher"
        assert data["totalQuestions"] == 1

        listed = {test["id"] for test in client.get("/api/tests").json()}
        assert data["id"] in listed

    def test_student_forbidden(self, client, auth_headers):
        response = client.post("/api/tests", json=self.payload, headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    def test_invalid_answer_index(self, client, teacher_headers):
        payload = {
            **self.payload,
            "questions": [{"id": "p1", "text": "?", "options": ["a", "b"], "correctAnswerIndex": 2}],
        }

        response = client.post("/api/tests", json=payload, headers=teacher_headers)

        assert response.status_code == 400


class TestSubmit:
    """Tests for POST /api/tests/submit."""

    def test_submit_returns_durable_record(self, client, auth_headers, submission):
        response = client.post("/api/tests/submit", json=submission, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert isinstance(data["id"], int)
        assert data["userId"] == "user_demo"
        assert data["percentage"] == 50
        assert data["subject"] == "mathematics"
        assert data["completedAt"]

    def test_submit_updates_user_stats(self, client, auth_headers, submission):
        client.post("/api/tests/submit", json=submission, headers=auth_headers)

        profile = client.get("/api/profile", headers=auth_headers).json()

        assert profile["testsCompleted"] == 1
        assert profile["averageScore"] == 50
        assert profile["totalStudyTime"] == 2  # 90 s -> 1.5 min

    def test_submit_requires_auth(self, client, submission):
        assert client.post("/api/tests/submit", json=submission).status_code == 401

    def test_missing_fields(self, client, auth_headers):
        response = client.post("/api/tests/submit", json={"answers": []}, headers=auth_headers)

        assert response.status_code == 400
        assert "error" in response.json()

    def test_score_above_total_rejected(self, client, auth_headers, submission):
        response = client.post(
            "/api/tests/submit", json={**submission, "score": 3}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_unknown_fields_rejected(self, client, auth_headers, submission):
        response = client.post(
            "/api/tests/submit", json={**submission, "bonus": 10}, headers=auth_headers
        )

        assert response.status_code == 400

    def test_snake_case_accepted(self, client, auth_headers):
        response = client.post("/api/tests/submit", json={
            "answers": [{"question_id": "q1", "selected_option_index": 0}],
            "score": 1,
            "total": 1,
            "percentage": 100,
            "time_spent_seconds": 20,
        }, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["subject"] == "general"


class TestSubmitForTest:
    """Tests for POST /api/tests/{id}/submit."""

    def test_server_rescoring(self, client, auth_headers, submission):
        body = {
            **submission,
            "answers": [
                {"questionId": "q1", "selectedOptionIndex": 0},
                {"questionId": "q2", "selectedOptionIndex": 3},
            ],
            "score": 2,
            "total": 2,
            "percentage": 100,
        }

        response = client.post("/api/tests/test-1/submit", json=body, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["score"] == 1
        assert data["total"] == 2
        assert data["percentage"] == 50
        assert data["testId"] == "test-1"
        assert data["title"] == "Математика - Алгебра"
        assert [answer["correct"] for answer in data["answers"]] == [True, False]

    def test_unknown_test(self, client, auth_headers, submission):
        response = client.post("/api/tests/nope/submit", json=submission, headers=auth_headers)

        assert response.status_code == 404


class TestMyResults:
    """Tests for GET /api/tests/results/me."""

    def test_newest_first(self, client, auth_headers, submission):
        client.post("/api/tests/submit", json={**submission, "subject": "first"}, headers=auth_headers)
        client.post("/api/tests/submit", json={**submission, "subject": "second"}, headers=auth_headers)

        results = client.get("/api/tests/results/me", headers=auth_headers).json()

        assert [result["subject"] for result in results] == ["second", "first"]

    def test_only_own_results(self, client, auth_headers, teacher_headers, submission):
        client.post("/api/tests/submit", json=submission, headers=teacher_headers)

        assert client.get("/api/tests/results/me", headers=auth_headers).json() == []


class TestQuestionBank:
    """Tests for GET /api/questions."""

    def test_flat_bank_in_test_order(self, client):
        response = client.get("/api/questions")

        assert response.status_code == 200
        questions = response.json()
        assert len(questions) == 8
        assert questions[0]["text"] == "Решите уравнение: 2x + 5 = 13"
        assert [q["subject"] for q in questions[:3]] == ["mathematics", "mathematics", "history"]
        assert all(q["subject"] == "general" for q in questions[3:])

    def test_filter_by_subject(self, client):
        questions = client.get("/api/questions?subject=history").json()

        assert len(questions) == 1
        assert questions[0]["subject"] == "history"
        assert questions[0]["difficulty"] == "easy"
        assert questions[0]["correctAnswerIndex"] == 1

    def test_filter_by_difficulty(self, client):
        questions = client.get("/api/questions?difficulty=medium").json()

        assert [q["id"] for q in questions] == ["q1", "q2"]

    def test_no_match_is_empty(self, client):
        assert client.get("/api/questions?subject=chemistry").json() == []

    def test_exam_mode_hides_answers(self, client):
        questions = client.get("/api/questions?mode=exam").json()

        assert questions
        for question in questions:
            assert "correctAnswerIndex" not in question
            assert "explanation" not in question

    def test_invalid_difficulty(self, client):
        response = client.get("/api/questions?difficulty=extreme")

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
