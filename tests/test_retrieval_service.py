"""Tests for retrieval and prompt injection."""

from __future__ import annotations

import pytest

from shared.models.chat import ChatMessage, FileAttachment, MessageExtra, WorldInfoEntry
from shared.models.settings import PromptPosition, PromptRole
from shared.utils.hashing import get_file_collection_id
from services.vector_memory.PromptSlotRegistry import EXTENSION_PROMPT_TAG, EXTENSION_PROMPT_TAG_DB


@pytest.mark.asyncio
async def test_query_text_uses_newest_messages(retrieval_service, settings_store, chat) -> None:
    settings_store.update({"query": 2})
    chat.append(ChatMessage(name="Aria", mes=""))

    query_text = await retrieval_service.get_query_text(chat)

    assert query_text == "Do you remember my sword?\nThe lake is quiet under the moon."


@pytest.mark.asyncio
async def test_query_text_can_be_summarized(retrieval_service, settings_store, llm_client, chat) -> None:
    settings_store.update({"summarize": True, "summarize_sent": True})

    assert await retrieval_service.get_query_text(chat) == "summary: Do you remember my sword?"
    assert len(llm_client.prompts) == 1


@pytest.mark.asyncio
async def test_rearrange_moves_relevant_messages_into_prompt(retrieval_service, sync_service, chat) -> None:
    await sync_service.synchronize_chat("chat-1", chat, 10)

    result = await retrieval_service.rearrange_chat("chat-1", chat)

    assert [message.mes for message in result.messages] == [
        "The story begins.",
        "The tavern smells of rain and old wood.",
        "We travel north to the frozen lake.",
        "The lake is quiet under the moon.",
        "Do you remember my sword?",
    ]
    slot = result.prompts[EXTENSION_PROMPT_TAG]
    assert slot.text == "Past events:\nUser: My sword is called Nightfall."
    assert slot.position == PromptPosition.IN_PROMPT
    assert slot.depth == 2
    # the caller's transcript is left alone
    assert len(chat) == 6


@pytest.mark.asyncio
async def test_rearrange_orders_by_relevance_and_protects_recent(retrieval_service, sync_service, settings_store) -> None:
    settings_store.update({"protect": 1})
    messages = [
        ChatMessage(name="Aria", mes="My sword is called Nightfall."),
        ChatMessage(name="Aria", mes="The lake is quiet under the moon."),
        ChatMessage(name="User", mes="filler one"),
        ChatMessage(name="User", mes="sword lake moon"),
    ]
    await sync_service.synchronize_chat("chat-1", messages, 10)

    result = await retrieval_service.rearrange_chat("chat-1", messages)

    assert [message.mes for message in result.messages] == ["filler one", "sword lake moon"]
    assert result.prompts[EXTENSION_PROMPT_TAG].text == (
        "Past events:\nAria: The lake is quiet under the moon.\n\nAria: My sword is called Nightfall."
    )


@pytest.mark.asyncio
async def test_rearrange_dedupes_by_hash(retrieval_service, sync_service, settings_store) -> None:
    settings_store.update({"protect": 1})
    messages = [
        ChatMessage(name="Aria", mes="Nightfall the sword\n\n\nis sharp."),
        ChatMessage(name="Aria", mes="Nightfall the sword\n\n\nis sharp."),
        ChatMessage(name="User", mes="Tell me about the sword"),
    ]
    await sync_service.synchronize_chat("chat-1", messages, 10)

    result = await retrieval_service.rearrange_chat("chat-1", messages)

    assert len(result.messages) == 2
    assert result.prompts[EXTENSION_PROMPT_TAG].text == "Past events:\nAria: Nightfall the sword\nis sharp."


@pytest.mark.asyncio
async def test_protect_floor_keeps_short_chats_unchanged(retrieval_service, sync_service, settings_store, vector_client, chat) -> None:
    await sync_service.synchronize_chat("chat-1", chat, 10)
    settings_store.update({"protect": len(chat) + 1})

    result = await retrieval_service.rearrange_chat("chat-1", chat)

    assert [message.mes for message in result.messages] == [message.mes for message in chat]
    assert result.prompts[EXTENSION_PROMPT_TAG].text == ""
    assert ("query", "chat-1") not in vector_client.calls


@pytest.mark.asyncio
async def test_rearrange_failure_keeps_transcript(retrieval_service, sync_service, vector_client, notifications, chat) -> None:
    await sync_service.synchronize_chat("chat-1", chat, 10)
    vector_client.fail_on = {"query"}

    result = await retrieval_service.rearrange_chat("chat-1", chat)

    assert [message.mes for message in result.messages] == [message.mes for message in chat]
    assert result.prompts[EXTENSION_PROMPT_TAG].text == ""
    assert notifications.get_entries()[-1].title == "Vector Storage"


@pytest.mark.asyncio
async def test_data_bank_chunks_are_deduplicated_across_files(retrieval_service, settings_store, file_client, chat) -> None:
    settings_store.update({"enabled_files": True, "enabled_chats": False, "file_depth_db": 6, "file_depth_role_db": PromptRole.USER})
    file_client.files = {
        "/user/files/a.txt": "Nightfall is a cursed sword.",
        "/user/files/b.txt": "Nightfall is a cursed sword.",
        "/user/files/c.txt": "Bread recipes.",
    }
    data_bank = [FileAttachment(url=url, name=url.rsplit("/", 1)[-1], size=30) for url in file_client.files]

    result = await retrieval_service.rearrange_chat("chat-1", chat, data_bank=data_bank)

    slot = result.prompts[EXTENSION_PROMPT_TAG_DB]
    assert slot.text == "Related information:\nNightfall is a cursed sword."
    assert slot.depth == 6
    assert slot.role == PromptRole.USER


@pytest.mark.asyncio
async def test_data_bank_chunks_follow_file_order(retrieval_service, settings_store, prompt_slots, sync_service) -> None:
    settings_store.update({"chunk_count_db": 5})
    collection_id = get_file_collection_id("/user/files/lore.txt")
    await sync_service.vectorize_file("sword part one\n\nsword part two\n\nsword part three", "lore.txt", collection_id, 16)

    await retrieval_service.inject_data_bank_chunks("sword three", [collection_id])

    text = prompt_slots.get_text(EXTENSION_PROMPT_TAG_DB)
    assert text == "Related information:\nsword part one\nsword part two\nsword part three"


@pytest.mark.asyncio
async def test_large_attachment_is_replaced_by_relevant_chunks(retrieval_service, settings_store, vector_client) -> None:
    settings_store.update({"enabled_files": True, "enabled_chats": False, "size_threshold": 0.01, "chunk_size": 30})
    file_text = "Swords are forged in fire.\n\nShields are made of oak."
    question = "What does the file say about swords?"
    message = ChatMessage(
        name="User",
        mes=f"{file_text}\n\n{question}",
        is_user=True,
        extra=MessageExtra(file=FileAttachment(url="/user/files/arms.txt", name="arms.txt", size=len(file_text)), fileLength=len(file_text)),
    )

    result = await retrieval_service.rearrange_chat("chat-1", [message])

    rewritten = result.messages[0].mes
    assert rewritten.startswith("Swords are forged in fire.\n\n")
    assert rewritten.endswith(question)
    assert "Shields" not in rewritten
    assert get_file_collection_id("/user/files/arms.txt") in vector_client.collections


@pytest.mark.asyncio
async def test_small_attachment_is_left_inline(retrieval_service, settings_store, vector_client) -> None:
    settings_store.update({"enabled_files": True, "enabled_chats": False})
    message = ChatMessage(
        name="User",
        mes="tiny file\n\nquestion",
        extra=MessageExtra(file=FileAttachment(url="/user/files/tiny.txt", name="tiny.txt", size=9), file_length=9),
    )

    result = await retrieval_service.rearrange_chat("chat-1", [message])

    assert result.messages[0].mes == "tiny file\n\nquestion"
    assert vector_client.collections == {}


@pytest.mark.asyncio
async def test_world_info_activation(retrieval_service, settings_store, chat) -> None:
    settings_store.update({"enabled_world_info": True, "enabled_chats": False})
    entries = [
        WorldInfoEntry(uid=1, world="Eldoria", content="Nightfall the sword sleeps in stone.", vectorized=True),
        WorldInfoEntry(uid=2, world="Eldoria", content="Dragons sleep in winter.", vectorized=True),
    ]

    result = await retrieval_service.rearrange_chat("chat-1", chat, world_info=entries)

    assert [entry.uid for entry in result.activated_entries] == [1]


@pytest.mark.asyncio
async def test_search_data_bank_clamps_threshold(retrieval_service, file_client, vector_client) -> None:
    file_client.files = {"/user/files/a.txt": "Nightfall is a cursed sword.", "/user/files/b.txt": "The frozen lake."}
    attachments = [FileAttachment(url=url, name="f", size=20, source="global") for url in file_client.files]

    assert await retrieval_service.search_data_bank("sword", attachments) == ["/user/files/a.txt"]
    assert await retrieval_service.search_data_bank("sword", attachments, threshold=7.5) == ["/user/files/a.txt"]
    assert await retrieval_service.search_data_bank("sword", attachments, threshold=-1) == ["/user/files/a.txt"]
    assert vector_client.thresholds == [0.1, 1.0, 0.0]


@pytest.mark.asyncio
async def test_files_are_not_queried_without_query_text(retrieval_service, settings_store, file_client, vector_client, prompt_slots) -> None:
    settings_store.update({"enabled_files": True, "enabled_chats": False, "size_threshold": 0.01, "chunk_size": 30})
    file_client.files = {"/user/files/lore.txt": "Nightfall is a cursed sword."}
    data_bank = [FileAttachment(url="/user/files/lore.txt", name="lore.txt", size=28)]
    file_text = "Swords are forged in fire.\n\nShields are made of oak."
    message = ChatMessage(
        name="User",
        mes=file_text,
        extra=MessageExtra(file=FileAttachment(url="/user/files/arms.txt", name="arms.txt", size=len(file_text)), fileLength=len(file_text)),
    )

    result = await retrieval_service.rearrange_chat("chat-1", [message], data_bank=data_bank)

    assert result.messages[0].mes == ""
    assert get_file_collection_id("/user/files/lore.txt") in vector_client.collections
    assert get_file_collection_id("/user/files/arms.txt") in vector_client.collections
    assert [call for call in vector_client.calls if call[0] in ("query", "query_multi")] == []
    assert prompt_slots.get_text(EXTENSION_PROMPT_TAG_DB) == ""
