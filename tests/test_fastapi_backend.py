from __future__ import annotations

import json

from fastapi.testclient import TestClient

from backend.app.main import create_app
from symptom_triage.config import TriageConfig
from symptom_triage.exceptions import InternalError


def _client(monkeypatch, config: TriageConfig | None = None) -> TestClient:
    monkeypatch.setenv("TRIAGE_AUTH_SECRET", "test-secret")
    monkeypatch.delenv("TRIAGE_AUTH_USERS_JSON", raising=False)
    app = create_app(config or TriageConfig())
    return TestClient(app)


def _login(client: TestClient, *, username: str = "demo_user", password: str = "demo123") -> dict:
    response = client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )
    assert response.status_code == 200
    return response.json()


def _auth_headers(client: TestClient) -> dict[str, str]:
    return {"Authorization": f"Bearer {_login(client)['access_token']}"}


def test_health_endpoint(monkeypatch) -> None:
    with _client(monkeypatch) as client:
        response = client.get("/health")
        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "ok"
        assert payload["service"] == "symptom-triage-api"


def test_login_and_me(monkeypatch) -> None:
    with _client(monkeypatch) as client:
        login = _login(client)
        assert login["token_type"] == "bearer"
        assert login["user"]["username"] == "demo_user"

        me = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {login['access_token']}"},
        )
        assert me.status_code == 200
        assert me.json()["email"] == "demo@example.com"


def test_login_rejects_bad_password(monkeypatch) -> None:
    with _client(monkeypatch) as client:
        response = client.post(
            "/api/v1/auth/login",
            json={"username": "demo_user", "password": "wrong"},
        )
        assert response.status_code == 401


def test_register_issues_token_and_blocks_duplicates(monkeypatch) -> None:
    with _client(monkeypatch) as client:
        body = {"username": "new_user", "email": "new@example.com", "password": "secret1"}
        created = client.post("/api/v1/auth/register", json=body)
        assert created.status_code == 201
        assert created.json()["user"]["name"] == "new_user"

        duplicate = client.post("/api/v1/auth/register", json=body)
        assert duplicate.status_code == 400

        short = client.post(
            "/api/v1/auth/register",
            json={"username": "other", "email": "o@example.com", "password": "123"},
        )
        assert short.status_code == 422

        login = _login(client, username="new_user", password="secret1")
        assert login["user"]["id"] == created.json()["user"]["id"]


def test_seed_users_from_env(monkeypatch) -> None:
    monkeypatch.setenv("TRIAGE_AUTH_SECRET", "test-secret")
    monkeypatch.setenv(
        "TRIAGE_AUTH_USERS_JSON",
        json.dumps([{"username": "clinic", "password": "clinic123"}]),
    )
    with TestClient(create_app(TriageConfig())) as client:
        _login(client, username="clinic", password="clinic123")
        missing = client.post(
            "/api/v1/auth/login",
            json={"username": "demo_user", "password": "demo123"},
        )
        assert missing.status_code == 401


def test_symptom_analysis_returns_triage_result(monkeypatch) -> None:
    with _client(monkeypatch) as client:
        response = client.post(
            "/api/v1/symptom-analyzer",
            json={
                "symptoms": "I have a throbbing headache and a fever",
                "userProfile": {"age": 34, "sex": "female"},
            },
            headers=_auth_headers(client),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["primary_diagnosis"] == "Possible Influenza or Viral Infection"
        assert body["urgency_score"] == 5
        assert body["urgency_level"] == "Medium"
        assert body["potential_conditions"][0] == {
            "condition": "Influenza",
            "probability": 0.7,
            "description": "A common viral infection that can be deadly, especially in high-risk groups.",
            "common_symptoms": ["fever", "chills", "muscle aches", "cough", "sore throat"],
        }
        report = body["formatted_report"]
        assert report["title"] == 'AI Health Analysis for: "I have a throbbing headache and a fever"'
        assert [section["heading"] for section in report["sections"]] == [
            "Potential Conditions",
            "Detailed Symptom Review",
        ]
        assert body["timestamp"].endswith("Z")
        assert body["request_id"]
        assert "not a substitute" in body["disclaimer"]


def test_symptom_analysis_emergency(monkeypatch) -> None:
    with _client(monkeypatch) as client:
        response = client.post(
            "/api/v1/symptom-analyzer",
            json={"symptoms": "severe chest pain and shortness of breath"},
            headers=_auth_headers(client),
        )
        assert response.status_code == 200
        assert response.json()["urgency_level"] == "Emergency"


def test_symptom_analysis_rejects_blank_and_missing_symptoms(monkeypatch) -> None:
    with _client(monkeypatch) as client:
        headers = _auth_headers(client)
        blank = client.post("/api/v1/symptom-analyzer", json={"symptoms": "  "}, headers=headers)
        assert blank.status_code == 400
        assert blank.json()["detail"] == "Symptom description is required."

        missing = client.post("/api/v1/symptom-analyzer", json={}, headers=headers)
        assert missing.status_code == 400

        null = client.post("/api/v1/symptom-analyzer", json={"symptoms": None}, headers=headers)
        assert null.status_code == 400


def test_symptom_analysis_rejects_overlong_symptoms(monkeypatch) -> None:
    with _client(monkeypatch, TriageConfig(max_symptoms_length=20)) as client:
        response = client.post(
            "/api/v1/symptom-analyzer",
            json={"symptoms": "headache and fever for a whole week"},
            headers=_auth_headers(client),
        )
        assert response.status_code == 400


def test_symptom_analysis_validates_user_profile(monkeypatch) -> None:
    with _client(monkeypatch) as client:
        response = client.post(
            "/api/v1/symptom-analyzer",
            json={"symptoms": "tired", "userProfile": {"age": -1, "sex": "unknown"}},
            headers=_auth_headers(client),
        )
        assert response.status_code == 422


def test_symptom_analysis_requires_token(monkeypatch) -> None:
    with _client(monkeypatch) as client:
        missing = client.post("/api/v1/symptom-analyzer", json={"symptoms": "tired"})
        assert missing.status_code == 401

        invalid = client.post(
            "/api/v1/symptom-analyzer",
            json={"symptoms": "tired"},
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert invalid.status_code == 403


def test_symptom_analysis_reports_internal_errors_generically(monkeypatch) -> None:
    class _FailingService:
        def analyze(self, symptoms, user_profile=None):
            raise InternalError("report template exploded")

    with _client(monkeypatch) as client:
        headers = _auth_headers(client)
        client.app.state.triage_service = _FailingService()
        response = client.post(
            "/api/v1/symptom-analyzer",
            json={"symptoms": "tired"},
            headers=headers,
        )
        assert response.status_code == 500
        assert response.json()["detail"] == "An unexpected error occurred during symptom analysis."
