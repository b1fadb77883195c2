"""
Tests for auth and profile endpoints.
"""


class TestRegister:
    """Tests for POST /api/auth/register."""

    def test_register_success(self, client):
        response = client.post("/api/auth/register", json={
            "email": "Student@Example.com",
            "password": "secret123",
            "name": "Айгерим",
        })

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "student@example.com"
        assert data["user"]["role"] == "student"
        assert data["user"]["testsCompleted"] == 0
        assert data["token"]

    def test_token_from_register_works(self, client):
        token = client.post("/api/auth/register", json={
            "email": "new@example.com", "password": "secret123", "name": "New"
        }).json()["token"]

        response = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["email"] == "new@example.com"

    def test_duplicate_email(self, client):
        response = client.post("/api/auth/register", json={
            "email": "demo@example.com", "password": "secret123", "name": "Dup"
        })

        assert response.status_code == 400
        assert response.json() == {"error": "User already exists", "code": "validation_error"}

    def test_missing_fields(self, client):
        response = client.post("/api/auth/register", json={"email": "x@example.com"})

        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_cannot_self_register_as_admin(self, client):
        response = client.post("/api/auth/register", json={
            "email": "boss@example.com", "password": "secret123", "name": "Boss", "role": "admin"
        })

        assert response.status_code == 400


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_seeded_user(self, client):
        response = client.post("/api/auth/login", json={
            "email": "demo@example.com", "password": "password123"
        })

        assert response.status_code == 200
        assert response.json()["user"]["id"] == "user_demo"

    def test_wrong_password(self, client):
        response = client.post("/api/auth/login", json={
            "email": "demo@example.com", "password": "nope"
        })

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    def test_logout(self, client):
        assert client.post("/api/auth/logout").json() == {"message": "Logged out successfully"}


class TestAuthRequired:
    """Tests for Bearer token handling."""

    def test_missing_token(self, client):
        response = client.get("/api/profile")

        assert response.status_code == 401
        assert response.json() == {"error": "Access token required", "code": "authentication_required"}

    def test_invalid_token(self, client):
        response = client.get("/api/profile", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401


class TestProfile:
    """Tests for /api/profile."""

    def test_get_profile(self, client, auth_headers):
        response = client.get("/api/profile", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == "user_demo"
        assert data["totalStudyTime"] == 0

    def test_update_name(self, client, auth_headers):
        response = client.put("/api/profile", json={"name": "Ерлан"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Ерлан"

    def test_update_nothing(self, client, auth_headers):
        response = client.put("/api/profile", json={}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "No fields to update"

    def test_update_to_taken_email(self, client, auth_headers):
        response = client.put("/api/profile", json={"email": "teacher@example.com"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Email already exists"

    def test_stats_for_new_user(self, client, auth_headers):
        data = client.get("/api/profile/stats", headers=auth_headers).json()

        assert data["testsCompleted"] == 0
        assert data["rank"] == "Начинающий"
        assert data["achievements"] == []
        assert data["recentTests"] == []

    def test_stats_after_submissions(self, client, auth_headers, submission):
        for _ in range(3):
            client.post("/api/tests/test-1/submit", json={
                **submission,
                "answers": [
                    {"questionId": "q1", "selectedOptionIndex": 0},
                    {"questionId": "q2", "selectedOptionIndex": 0},
                ],
            }, headers=auth_headers)

        data = client.get("/api/profile/stats", headers=auth_headers).json()

        assert data["testsCompleted"] == 3
        assert data["averageScore"] == 100
        assert data["totalQuestions"] == 6
        assert data["correctAnswers"] == 6
        assert data["streak"] == 3
        assert data["rank"] == "Эксперт"
        assert data["achievements"] == ["Первый тест", "Серия побед", "Отличник"]
        assert len(data["recentTests"]) == 3
