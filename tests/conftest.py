"""Test fixtures for the vector memory bridge."""

from __future__ import annotations

import asyncio
import logging
import re

import pytest

from shared.clients.vector.models.QueryResult import QueryResult
from shared.clients.vector.models.VectorItem import VectorItem
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatMessage
from shared.models.settings import VectorSettings
from services.vector_memory.ChatContext import ChatContext
from services.vector_memory.NotificationLog import NotificationLog
from services.vector_memory.PromptSlotRegistry import PromptSlotRegistry
from services.vector_memory.RetrievalService import RetrievalService
from services.vector_memory.SettingsStore import SettingsStore
from services.vector_memory.SummarizeService import SummarizeService
from services.vector_memory.SyncService import SyncService

_WORD_RE = re.compile(r"\w+")


def _words(text: str) -> set[str]:
    return {word.lower() for word in _WORD_RE.findall(text)}


class FakeVectorClient:
    """In-memory vector store scoring items by word overlap with the query."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[int, list[VectorItem]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()
        self.thresholds: list[float] = []

    async def _record(self, operation: str, collection_id: str) -> None:
        # yield like a real request would
        await asyncio.sleep(0)
        self.calls.append((operation, collection_id))
        if operation in self.fail_on:
            raise RuntimeError(f"{operation} failed")

    def writes(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] in ("insert", "delete", "purge")]

    async def do_list(self, collection_id: str, settings: VectorSettings) -> list[int]:
        await self._record("list", collection_id)
        return list(self.collections.get(collection_id, {}))

    async def do_insert(self, collection_id: str, items: list[VectorItem], settings: VectorSettings) -> None:
        await self._record("insert", collection_id)
        collection = self.collections.setdefault(collection_id, {})
        fresh: dict[int, list[VectorItem]] = {}
        for item in items:
            fresh.setdefault(item.hash, []).append(item)
        collection.update(fresh)

    async def do_delete(self, collection_id: str, hashes: list[int], settings: VectorSettings) -> None:
        await self._record("delete", collection_id)
        collection = self.collections.get(collection_id, {})
        for value in hashes:
            collection.pop(value, None)

    def _rank(self, collection_id: str, search_text: str, top_k: int, threshold: float) -> QueryResult:
        query_words = _words(search_text)
        scored: list[tuple[float, VectorItem]] = []
        for items in self.collections.get(collection_id, {}).values():
            for item in items:
                score = len(query_words & _words(item.text)) / len(query_words) if query_words else 0.0
                if score > 0 and score >= threshold:
                    scored.append((score, item))
        scored.sort(key=lambda pair: pair[0], reverse=True)
        top = scored[:top_k]
        return QueryResult(
            hashes=[item.hash for _, item in top],
            metadata=[{"hash": item.hash, "text": item.text, "index": item.index} for _, item in top],
        )

    async def do_query(self, collection_id: str, search_text: str, top_k: int, threshold: float, settings: VectorSettings) -> QueryResult:
        await self._record("query", collection_id)
        return self._rank(collection_id, search_text, top_k, threshold)

    async def do_query_multiple(self, collection_ids: list[str], search_text: str, top_k: int, threshold: float, settings: VectorSettings) -> dict[str, QueryResult]:
        await self._record("query_multi", ",".join(collection_ids))
        self.thresholds.append(threshold)
        return {collection_id: self._rank(collection_id, search_text, top_k, threshold) for collection_id in collection_ids}

    async def do_purge(self, collection_id: str, settings: VectorSettings) -> None:
        await self._record("purge", collection_id)
        self.collections.pop(collection_id, None)


class FakeFileClient:
    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files = dict(files or {})
        self.fetched: list[str] = []

    async def do_fetch_attachment(self, url: str) -> str:
        self.fetched.append(url)
        return self.files[url]


class FakeLLMClient:
    def __init__(self) -> None:
        self.prompts: list[tuple[str, str]] = []

    async def do_generate_raw(self, prompt: str, system_prompt: str = "") -> str:
        self.prompts.append((prompt, system_prompt))
        return f"summary: {prompt}"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep settings persistence and API keys out of the tests."""
    monkeypatch.delenv("VECTORS_SETTINGS_FILE", raising=False)
    monkeypatch.setenv("APP_API_KEY", "test-key")


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=logging.getLogger("vector_memory_bridge.tests"))


@pytest.fixture
def vector_client() -> FakeVectorClient:
    return FakeVectorClient()


@pytest.fixture
def file_client() -> FakeFileClient:
    return FakeFileClient()


@pytest.fixture
def llm_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def settings_store(helper_config: HelperConfig) -> SettingsStore:
    return SettingsStore(
        helper_config=helper_config,
        settings=VectorSettings(enabled_chats=True, message_chunk_size=0, protect=2, insert=3, query=1, score_threshold=0.1),
    )


@pytest.fixture
def chat_context() -> ChatContext:
    return ChatContext(chat_id="chat-1")


@pytest.fixture
def notifications(helper_config: HelperConfig) -> NotificationLog:
    return NotificationLog(helper_config=helper_config)


@pytest.fixture
def prompt_slots() -> PromptSlotRegistry:
    return PromptSlotRegistry()


@pytest.fixture
def summarizer(helper_config: HelperConfig, llm_client: FakeLLMClient) -> SummarizeService:
    return SummarizeService(helper_config=helper_config, llm_client=llm_client)


@pytest.fixture
def sync_service(helper_config, vector_client, file_client, settings_store, chat_context, notifications, summarizer) -> SyncService:
    return SyncService(
        helper_config=helper_config,
        vector_client=vector_client,
        file_client=file_client,
        settings_store=settings_store,
        chat_context=chat_context,
        notifications=notifications,
        summarizer=summarizer,
    )


@pytest.fixture
def retrieval_service(helper_config, vector_client, sync_service, settings_store, prompt_slots, notifications, summarizer) -> RetrievalService:
    return RetrievalService(
        helper_config=helper_config,
        vector_client=vector_client,
        sync_service=sync_service,
        settings_store=settings_store,
        prompt_slots=prompt_slots,
        notifications=notifications,
        summarizer=summarizer,
    )


@pytest.fixture
def chat() -> list[ChatMessage]:
    return [
        ChatMessage(name="System", mes="The story begins.", is_system=True),
        ChatMessage(name="User", mes="My sword is called Nightfall.", is_user=True),
        ChatMessage(name="Aria", mes="The tavern smells of rain and old wood."),
        ChatMessage(name="User", mes="We travel north to the frozen lake.", is_user=True),
        ChatMessage(name="Aria", mes="The lake is quiet under the moon."),
        ChatMessage(name="User", mes="Do you remember my sword?", is_user=True),
    ]
