"""API integration tests."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from server.routers.DataBankRouter import router as databank_router
from server.routers.FilesRouter import router as files_router
from server.routers.MemoryRouter import router as memory_router
from server.routers.SettingsRouter import router as settings_router

HEADERS = {"X-Api-Key": "test-key"}


@pytest.fixture
def client(helper_config, settings_store, chat_context, prompt_slots, notifications, sync_service, retrieval_service, vector_client) -> TestClient:
    app = FastAPI()
    app.include_router(settings_router)
    app.include_router(memory_router)
    app.include_router(files_router)
    app.include_router(databank_router)
    app.state.helper_config = helper_config
    app.state.settings_store = settings_store
    app.state.chat_context = chat_context
    app.state.prompt_slots = prompt_slots
    app.state.notifications = notifications
    app.state.sync_service = sync_service
    app.state.retrieval_service = retrieval_service
    with TestClient(app) as test_client:
        yield test_client


def _chat_payload(chat) -> list[dict]:
    return [message.model_dump(by_alias=True) for message in chat]


def test_requires_api_key(client: TestClient) -> None:
    assert client.get("/settings").status_code == 422
    assert client.get("/settings", headers={"X-Api-Key": "wrong"}).status_code == 401


def test_get_and_update_settings(client: TestClient) -> None:
    resp = client.get("/settings", headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["template"] == "Past events:\n{{text}}"

    resp = client.put("/settings", headers=HEADERS, json={"insert": 7, "source": "ollama"})
    assert resp.status_code == 200
    assert resp.json()["insert"] == 7
    assert resp.json()["source"] == "ollama"
    assert resp.json()["enabled_chats"] is True


def test_invalid_settings_are_rejected(client: TestClient) -> None:
    resp = client.put("/settings", headers=HEADERS, json={"score_threshold": 3})
    assert resp.status_code == 422
    assert client.get("/settings", headers=HEADERS).json()["score_threshold"] == 0.1


def test_context_drives_memory_sync(client: TestClient, chat, vector_client) -> None:
    resp = client.put("/context", headers=HEADERS, json={"chat_id": "chat-9", "generating": False})
    assert resp.json() == {"chat_id": "chat-9", "generating": False}

    resp = client.post("/memory/sync", headers=HEADERS, json={"messages": _chat_payload(chat), "batch_size": 2})
    assert resp.status_code == 200
    assert resp.json() == {"chat_id": "chat-9", "remaining": 3}
    assert "chat-9" in vector_client.collections


def test_sync_is_blocked_while_generating(client: TestClient, chat) -> None:
    client.put("/context", headers=HEADERS, json={"chat_id": "chat-1", "generating": True})

    resp = client.post("/memory/sync", headers=HEADERS, json={"messages": _chat_payload(chat)})
    assert resp.json()["remaining"] is None


def test_vectorize_stats_and_purge(client: TestClient, chat, vector_client) -> None:
    payload = {"chat_id": "chat-1", "messages": _chat_payload(chat)}

    progress = client.post("/memory/vectorize-all", headers=HEADERS, json=payload).json()
    assert progress["finished"] is True
    assert progress["percent"] == 100

    stats = client.post("/memory/stats", headers=HEADERS, json=payload).json()
    assert stats["total_hashes"] == 5
    assert stats["vectorized_indices"] == [1, 2, 3, 4, 5]

    assert client.post("/memory/purge", headers=HEADERS, json={"chat_id": "chat-1"}).json() == {"purged": True}
    assert "chat-1" not in vector_client.collections


def test_interceptor_returns_rearranged_chat(client: TestClient, chat) -> None:
    client.post("/memory/sync", headers=HEADERS, json={"chat_id": "chat-1", "messages": _chat_payload(chat), "batch_size": 10})

    resp = client.post("/interceptor/rearrange", headers=HEADERS, json={"chat_id": "chat-1", "messages": _chat_payload(chat)})

    body = resp.json()
    assert resp.status_code == 200
    assert len(body["messages"]) == 5
    assert body["prompts"]["3_vectors"]["text"] == "Past events:\nUser: My sword is called Nightfall."
    assert body["prompts"]["4_vectors_data_bank"]["text"] == ""
    assert body["activated_entries"] == []


def test_databank_ingest_search_and_purge(client: TestClient, file_client, vector_client) -> None:
    client.put("/settings", headers=HEADERS, json={"enabled_files": True})
    file_client.files = {"/user/files/a.txt": "Nightfall is a cursed sword."}
    attachments = [{"url": "/user/files/a.txt", "name": "a.txt", "size": 28, "source": "global"}]

    ingest = client.post("/databank/ingest", headers=HEADERS, json={"attachments": attachments}).json()
    assert len(ingest["collection_ids"]) == 1

    search = client.post("/databank/search", headers=HEADERS, json={"attachments": attachments, "query": "sword"}).json()
    assert search["urls"] == ["/user/files/a.txt"]
    assert search["total"] == 1

    purge = client.post("/databank/purge", headers=HEADERS, json={"attachments": attachments}).json()
    assert purge == {"purged": ["/user/files/a.txt"]}
    assert vector_client.collections == {}


def test_files_vectorize_all_and_notifications(client: TestClient, file_client) -> None:
    file_client.files = {"/user/files/db.txt": "data bank text"}
    body = {"data_bank": [{"url": "/user/files/db.txt", "name": "db.txt", "size": 14}]}

    result = client.post("/files/vectorize-all", headers=HEADERS, json=body).json()
    assert result["vectorized"] == ["/user/files/db.txt"]

    notes = client.get("/notifications", headers=HEADERS).json()
    assert notes["total"] == 1
    assert notes["notifications"][0]["title"] == "Vectorization successful"

    # purge-one is a no-op while file vectorization is disabled
    assert client.post("/files/purge-one", headers=HEADERS, json={"url": "/user/files/db.txt"}).json() == {"purged": False}
