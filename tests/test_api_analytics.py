"""
Tests for analytics endpoints.
"""


class TestUserAnalytics:
    """Tests for GET /api/analytics."""

    def test_empty_history(self, client, auth_headers):
        response = client.get("/api/analytics", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["totalTests"] == 0
        assert data["averageScore"] == 0
        assert data["studyStreak"] == 0
        assert data["subjectBreakdown"] == []
        assert data["difficultyBreakdown"] == []

    def test_after_submissions(self, client, auth_headers, submission):
        client.post("/api/tests/submit", json={**submission, "percentage": 45, "score": 0}, headers=auth_headers)
        for percentage in (70, 80, 90):
            client.post("/api/tests/submit", json={**submission, "percentage": percentage}, headers=auth_headers)

        data = client.get("/api/analytics", headers=auth_headers).json()

        assert data["totalTests"] == 4
        assert data["averageScore"] == 71
        assert data["studyStreak"] == 3
        assert data["subjectBreakdown"] == [{
            "subject": "mathematics",
            "testsCount": 4,
            "averageScore": 71,
            "totalTime": 6,
            "percentage": 100,
        }]
        assert [point["score"] for point in data["progressTrend"]] == [45, 70, 80, 90]
        assert data["recentActivity"][0]["score"] == 90

    def test_requires_auth(self, client):
        assert client.get("/api/analytics").status_code == 401


class TestSubjectAnalytics:
    """Tests for GET /api/analytics/subject/{subject}."""

    def test_subject_results(self, client, auth_headers, submission):
        client.post("/api/tests/submit", json=submission, headers=auth_headers)
        client.post("/api/tests/submit", json={**submission, "subject": "history"}, headers=auth_headers)

        data = client.get("/api/analytics/subject/mathematics", headers=auth_headers).json()

        assert data["subject"] == "mathematics"
        assert data["totalTests"] == 1
        assert data["bestScore"] == 50
        assert len(data["results"]) == 1

    def test_unknown_subject_is_empty(self, client, auth_headers):
        data = client.get("/api/analytics/subject/chemistry", headers=auth_headers).json()

        assert data["totalTests"] == 0
        assert data["results"] == []


class TestComparison:
    """Tests for GET /api/analytics/comparison."""

    def test_no_eligible_users(self, client, auth_headers):
        data = client.get("/api/analytics/comparison", headers=auth_headers).json()

        assert data["user"]["percentile"] == 50
        assert data["platform"]["totalUsers"] == 0

    def test_percentile_against_others(self, client, auth_headers, teacher_headers, submission):
        client.post("/api/tests/submit", json={**submission, "percentage": 90}, headers=auth_headers)
        client.post("/api/tests/submit", json={**submission, "percentage": 40}, headers=teacher_headers)

        data = client.get("/api/analytics/comparison", headers=auth_headers).json()

        assert data["user"]["percentile"] == 50
        assert data["user"]["testsCompleted"] == 1
        assert data["platform"]["totalUsers"] == 2
        assert data["platform"]["averageScore"] == 65
