"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from actionflow import server
from actionflow.common.config import ActionflowConfig
from actionflow.common.llm_client import LLMClient
from actionflow.common.schemas import Integration
from actionflow.integrations.fireflies import FirefliesTranscript


class StubFireflies:
    def __init__(self, transcripts):
        self.transcripts = {t.id: t for t in transcripts}

    async def fetch_recent_transcripts(self, since_days=7, limit=50):
        return list(self.transcripts.values())

    async def fetch_transcript(self, transcript_id):
        return self.transcripts.get(transcript_id)


@pytest.fixture
def services(store, monkeypatch):
    store.add_integration(Integration(
        id="ff-int", user_id="u1", provider="fireflies", name="Team FF",
        credentials={"API_KEY": "ff-key"},
    ))
    svc = server.build_services(ActionflowConfig(), store=store, llm_client=LLMClient(provider="openai"))
    fireflies = StubFireflies([FirefliesTranscript.model_validate({
        "id": "ff-1",
        "title": "Standup",
        "sentences": [{"speaker_name": "Maria", "text": "I'll write the press release by tomorrow."}],
    })])
    svc.orchestrator._fireflies_client_factory = lambda api_key: fireflies
    monkeypatch.setattr(server, "services", svc)
    return svc


@pytest.fixture
def client():
    return TestClient(server.app)


class TestHealth:
    def test_health(self, client, services):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["extraction_engine"] == "heuristic"

    def test_uninitialized(self, client, monkeypatch):
        monkeypatch.setattr(server, "services", None)
        assert client.post("/extract", json={"text": "Send the deck"}).status_code == 503


class TestExtract:
    def test_extract(self, client, services):
        response = client.post("/extract", json={"text": "Maria: I'll send the deck.\nOmar: Nice weather."})

        assert response.status_code == 200
        body = response.json()
        assert body["engine"] == "heuristic"
        assert body["count"] == 1
        assert body["items"][0]["text"] == "send the deck"
        assert body["items"][0]["assignee"] == "Maria"

    def test_invalid_max_actions(self, client, services):
        assert client.post("/extract", json={"text": "x", "max_actions": 0}).status_code == 422


class TestSync:
    def test_bulk_sync(self, client, services):
        response = client.post("/sync/ff-int", json={"user_id": "u1"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["new_transcripts"] == 1
        assert response.json()["actions_created"] == 1

    def test_bulk_sync_unknown_integration(self, client, services):
        body = client.post("/sync/nope", json={"user_id": "u1"}).json()
        assert body["success"] is False
        assert body["error"] == "Fireflies integration not found or inactive"

    def test_estimate(self, client, services):
        response = client.get("/sync/ff-int/estimate", params={"user_id": "u1"})
        assert response.json() == {"integration_id": "ff-int", "new_transcripts": 1}


class TestFirefliesWebhook:
    def test_webhook_processes_transcript(self, client, services, store):
        response = client.post(
            "/webhooks/fireflies",
            json={"meetingId": "ff-1", "user_id": "u1", "integration_id": "ff-int"},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True, "meeting_id": "ff-1"}
        assert [a.name for a in store.actions.values()] == ["Write the press release by tomorrow"]

    def test_webhook_requires_meeting_id(self, client, services):
        response = client.post("/webhooks/fireflies", json={"user_id": "u1", "integration_id": "ff-int"})
        assert response.status_code == 422
