"""Smoke tests for API routes."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from algo_grind.api.routes import router
from algo_grind.config import Settings
from algo_grind.ledger import PracticeLedger
from algo_grind.main import create_app
from algo_grind.models.catalog import GOAL_CATEGORIES
from algo_grind.models.practice import ProblemCategory
from algo_grind.models.services import ChatReply, RecommendationResponse
from algo_grind.services.chat import ChatPersona
from algo_grind.storage.slot import JsonFileSlot

TWO_SUM = {
    "title": "Two Sum",
    "category": "array",
    "difficulty": "easy",
    "referenceUrl": "https://x",
    "dateSolved": "2024-01-01",
}


@pytest.fixture
def ledger(tmp_path):
    practice = PracticeLedger(JsonFileSlot(tmp_path / "ledger.json"))
    practice.load()
    return practice


@pytest.fixture
def chat_service():
    service = MagicMock()
    service.reply = AsyncMock(return_value=ChatReply(response="Try two pointers."))
    return service


@pytest.fixture
def recommendation_service():
    service = MagicMock()
    service.recommend = AsyncMock(return_value=RecommendationResponse())
    return service


@pytest.fixture
def client(ledger, chat_service, recommendation_service):
    app = FastAPI()
    app.include_router(router)
    app.state.ledger = ledger
    app.state.chat_service = chat_service
    app.state.recommendation_service = recommendation_service
    with TestClient(app) as c:
        yield c


class TestHealthCheck:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestRecords:
    def test_empty_ledger(self, client):
        data = client.get("/api/ledger").json()
        assert data["records"] == []
        assert data["schemaVersion"] == 1
        assert len(data["goalSettings"]["goals"]) == len(GOAL_CATEGORIES)

    def test_add_record(self, client, ledger):
        response = client.post("/api/records", json=TWO_SUM)
        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["markedForReview"] is False
        assert ledger.records[0].id == data["id"]

    def test_add_invalid_record(self, client, ledger):
        response = client.post("/api/records", json={**TWO_SUM, "category": "graphs"})
        assert response.status_code == 422
        assert ledger.records == ()

    def test_update_record(self, client, ledger):
        record = ledger.add_record(TWO_SUM)
        response = client.put(f"/api/records/{record.id}", json={**TWO_SUM, "difficulty": "hard"})
        assert response.status_code == 200
        assert response.json()["difficulty"] == "hard"
        assert ledger.records[0].difficulty == "hard"

    def test_update_unknown_record(self, client):
        response = client.put("/api/records/missing", json=TWO_SUM)
        assert response.status_code == 404

    def test_delete_record(self, client, ledger):
        record = ledger.add_record(TWO_SUM)
        assert client.delete(f"/api/records/{record.id}").status_code == 204
        assert ledger.records == ()
        assert client.delete(f"/api/records/{record.id}").status_code == 404

    def test_toggle_review(self, client, ledger):
        record = ledger.add_record(TWO_SUM)
        response = client.post(f"/api/records/{record.id}/review")
        assert response.status_code == 200
        assert response.json()["markedForReview"] is True
        assert client.post("/api/records/missing/review").status_code == 404


class TestGoals:
    def test_patch_period_keeps_goals(self, client, ledger):
        before = ledger.goal_settings.goals
        response = client.patch("/api/goals", json={"period": "weekly"})
        assert response.status_code == 200
        assert response.json()["period"] == "weekly"
        assert ledger.goal_settings.goals == before

    def test_patch_goals_list(self, client, ledger):
        response = client.patch(
            "/api/goals", json={"goals": [{"categoryId": "array", "target": 3}]}
        )
        assert response.status_code == 200
        assert response.json()["goals"] == {"array": {"categoryId": "array", "target": 3}}
        assert ledger.goal_settings.target_for("array") == 3

    def test_patch_null_fields_are_ignored(self, client, ledger):
        before = ledger.goal_settings
        response = client.patch("/api/goals", json={"period": None, "goals": None})
        assert response.status_code == 200
        assert response.json()["period"] == "daily"
        assert ledger.goal_settings.goals == before.goals

    def test_patch_invalid_period(self, client):
        assert client.patch("/api/goals", json={"period": "monthly"}).status_code == 422

    def test_progress(self, client):
        data = client.get("/api/goals/progress").json()
        assert data["period"] == "daily"
        assert data["start"] == data["end"]
        assert [p["category_id"] for p in data["progress"]] == [c.id for c in GOAL_CATEGORIES]


class TestAnalytics:
    def test_summary(self, client, ledger):
        ledger.add_record(TWO_SUM)
        ledger.add_record({**TWO_SUM, "title": "Climb", "category": "dp", "markedForReview": True})
        data = client.get("/api/analytics").json()
        assert data["total"] == 2
        assert data["solvedByCategory"] == {"array": 1, "dp": 1}
        assert len(data["weeklyProgress"]) == 8
        assert [r["title"] for r in data["reviewQueue"]] == ["Climb"]


class TestRecommendations:
    def test_passes_history_and_focus(self, client, ledger, recommendation_service):
        ledger.add_record(TWO_SUM)
        response = client.post("/api/recommendations", json={"focusCategories": ["dp"]})
        assert response.status_code == 200
        assert response.json() == {"recommendations": []}

        request = recommendation_service.recommend.call_args.args[0]
        assert len(request.solved_records) == 1
        assert request.focus_categories == [ProblemCategory.DP]


class TestChat:
    def test_fills_language_from_settings(self, client, chat_service):
        response = client.post("/api/chat/coding_buddy", json={"message": "help"})
        assert response.status_code == 200
        assert response.json() == {"response": "Try two pointers."}

        request, persona = chat_service.reply.call_args.args
        assert request.preferred_language == "javascript"
        assert persona == ChatPersona.CODING_BUDDY

    def test_explicit_language_wins(self, client, chat_service):
        client.post("/api/chat/coding_buddy", json={"message": "help", "preferredLanguage": "go"})
        assert chat_service.reply.call_args.args[0].preferred_language == "go"

    def test_unknown_persona(self, client):
        assert client.post("/api/chat/pirate", json={"message": "ahoy"}).status_code == 404

    def test_empty_message_rejected(self, client):
        assert client.post("/api/chat/mentor", json={"message": ""}).status_code == 422


class TestAppFactory:
    def test_lifespan_loads_ledger(self, tmp_path):
        settings = Settings(
            data_dir=tmp_path,
            openai_api_key=None,
            reminder_webhook_url=None,
        )
        with TestClient(create_app(settings)) as c:
            assert c.app.state.ledger.initialized is True
            assert c.post("/api/records", json=TWO_SUM).status_code == 201

        reloaded = PracticeLedger(JsonFileSlot(tmp_path / settings.ledger_filename))
        assert reloaded.load().records[0].title == "Two Sum"
