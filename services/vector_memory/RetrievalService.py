"""Retrieval service.

Queries the vector store for content relevant to the latest messages and
hands it to the prompt builder: past chat messages are moved out of the
transcript into the chat memory slot, Data Bank chunks go to their own slot,
large message attachments are replaced by their most relevant chunks and
matching World Info entries are returned for activation.
"""

import math

from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.clients.vector.VectorErrors import get_error_message
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatMessage, FileAttachment, WorldInfoEntry
from shared.models.memory import RearrangeResult
from shared.models.settings import VectorSettings
from shared.utils.hashing import get_file_collection_id, get_string_hash
from shared.utils.text import collapse_newlines, render_template
from services.vector_memory.NotificationLog import NotificationLog
from services.vector_memory.PromptSlotRegistry import EXTENSION_PROMPT_TAG, EXTENSION_PROMPT_TAG_DB, PromptSlotRegistry
from services.vector_memory.SettingsStore import SettingsStore
from services.vector_memory.SummarizeService import SummarizeService
from services.vector_memory.SyncService import KILOBYTE, SyncService


class RetrievalService:
    """Read side of vector memory. Ingestion on first use is delegated to SyncService."""

    def __init__(
        self,
        helper_config: HelperConfig,
        vector_client: VectorClientInterface,
        sync_service: SyncService,
        settings_store: SettingsStore,
        prompt_slots: PromptSlotRegistry,
        notifications: NotificationLog,
        summarizer: SummarizeService,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._vector_client = vector_client
        self._sync_service = sync_service
        self._settings_store = settings_store
        self._prompt_slots = prompt_slots
        self._notifications = notifications
        self._summarizer = summarizer

    ##########################################
    ################ QUERY ###################
    ##########################################

    async def get_query_text(self, messages: list[ChatMessage], settings: VectorSettings | None = None) -> str:
        """Build the search text from the newest non-empty messages.

        The last ``query`` messages with text are taken newest first, summarized
        when summarize and summarize_sent are both on, joined by newlines and
        collapsed.

        Returns:
            str: The query text; empty if there is nothing to search with.
        """
        settings = settings or self._settings_store.get()
        if settings.query <= 0:
            return ""

        texts = [message.mes for message in reversed(messages) if message.mes][:settings.query]
        if texts and settings.summarize and settings.summarize_sent:
            texts = await self._summarizer.summarize_texts(texts, settings)

        query_text = "".join(f"{text}\n" for text in texts if text)
        return collapse_newlines(query_text).strip()

    ##########################################
    ############## INTERCEPTOR ###############
    ##########################################

    async def rearrange_chat(
        self,
        chat_id: str | None,
        messages: list[ChatMessage],
        data_bank: list[FileAttachment] | None = None,
        world_info: list[WorldInfoEntry] | None = None,
    ) -> RearrangeResult:
        """Prepare a transcript for generation.

        Clears both extension prompts, then, as enabled: injects file content,
        activates World Info and moves the most relevant past messages into the
        chat memory prompt. The caller's messages are not modified.

        Returns:
            RearrangeResult: The transcript to send, the extension prompts and
                the World Info entries to force-activate.
        """
        settings = self._settings_store.get()
        messages = [message.model_copy(deep=True) for message in messages]
        activated: list[WorldInfoEntry] = []

        self._prompt_slots.set_extension_prompt(EXTENSION_PROMPT_TAG, "", settings.position, settings.depth, settings.include_wi)
        self._prompt_slots.set_extension_prompt(
            EXTENSION_PROMPT_TAG_DB, "", settings.file_position_db, settings.file_depth_db,
            settings.include_wi, settings.file_depth_role_db,
        )

        try:
            if settings.enabled_files:
                await self.process_files(messages, data_bank or [], settings)

            if settings.enabled_world_info:
                activated = await self.activate_world_info(messages, world_info or [], settings)

            if settings.enabled_chats:
                messages = await self._rearrange_messages(chat_id, messages, settings)
        except Exception as e:
            self.logging.error("Failed to rearrange chat: %s", e)
            self._notifications.notify(
                "error",
                "Vector Storage",
                "Generation interceptor aborted. Check server console for more details.",
            )

        return RearrangeResult(messages=messages, prompts=self._prompt_slots.snapshot(), activated_entries=activated)

    async def _rearrange_messages(self, chat_id: str | None, messages: list[ChatMessage], settings: VectorSettings) -> list[ChatMessage]:
        if not chat_id:
            self.logging.debug("No chat selected, nothing to rearrange.")
            return messages

        if len(messages) < settings.protect:
            self.logging.debug("Not enough messages to rearrange (less than %d).", settings.protect)
            return messages

        query_text = await self.get_query_text(messages, settings)
        if not query_text:
            self.logging.debug("No text to query.")
            return messages

        query_result = await self._vector_client.do_query(chat_id, query_text, settings.insert, settings.score_threshold, settings)
        rank = {value: position for position, value in enumerate(dict.fromkeys(query_result.hashes))}

        # the last `protect` messages always stay in place
        candidates = messages[:len(messages) - settings.protect]
        queried: list[ChatMessage] = []
        inserted_hashes: set[int] = set()
        for message in candidates:
            if not message.mes:
                continue
            message_hash = get_string_hash(message.mes)
            if message_hash in rank and message_hash not in inserted_hashes:
                queried.append(message)
                inserted_hashes.add(message_hash)

        if not queried:
            self.logging.debug("No relevant messages found.")
            return messages

        queried.sort(key=lambda message: rank[get_string_hash(message.mes)])
        removed = {id(message) for message in queried}
        remaining = [message for message in messages if id(message) not in removed]

        inserted_text = self._get_prompt_text(queried, settings)
        self._prompt_slots.set_extension_prompt(EXTENSION_PROMPT_TAG, inserted_text, settings.position, settings.depth, settings.include_wi)
        return remaining

    def _get_prompt_text(self, queried: list[ChatMessage], settings: VectorSettings) -> str:
        queried_text = "\n\n".join(collapse_newlines(f"{message.name}: {message.mes}").strip() for message in queried)
        self.logging.info("Relevant past messages found:\n%s", queried_text)
        return render_template(settings.template, {"text": queried_text})

    ##########################################
    ################# FILES ##################
    ##########################################

    async def process_files(self, messages: list[ChatMessage], data_bank: list[FileAttachment], settings: VectorSettings | None = None) -> None:
        """Inject Data Bank chunks and shrink large message attachments in place.

        A message whose attached file text is at least size_threshold KB loses
        the file text and is prefixed with the chunks most relevant to the
        latest messages instead. Failures are logged and notified.
        """
        settings = settings or self._settings_store.get()
        try:
            data_bank_collection_ids = await self._sync_service.ingest_data_bank_attachments(data_bank, settings=settings)
            if data_bank_collection_ids:
                query_text = await self.get_query_text(messages, settings)
                await self.inject_data_bank_chunks(query_text, data_bank_collection_ids, settings)

            for message in messages:
                file = message.extra.file
                if file is None:
                    continue

                file_length = message.extra.file_length
                file_text = message.mes[:file_length].strip()
                if len(file_text) < settings.size_threshold * KILOBYTE:
                    continue

                message.mes = message.mes[file_length:]
                collection_id = get_file_collection_id(file.url)
                if not await self._vector_client.do_list(collection_id, settings):
                    await self._sync_service.vectorize_file(file_text, file.name, collection_id, settings.chunk_size, settings)

                query_text = await self.get_query_text(messages, settings)
                file_chunks = await self.retrieve_file_chunks(query_text, collection_id, settings)
                if file_chunks:
                    message.mes = f"{file_chunks}\n\n{message.mes}"
        except Exception as e:
            self.logging.error("Failed to retrieve files: %s", e)
            self._notifications.notify("error", "Failed to retrieve files", get_error_message(e))

    async def inject_data_bank_chunks(self, query_text: str, collection_ids: list[str], settings: VectorSettings | None = None) -> None:
        """Query the Data Bank collections and fill the Data Bank prompt.

        Each collection contributes its unique chunk texts in file order,
        joined by newlines; collections are separated by a blank line. A chunk
        already taken from an earlier collection is not repeated.
        """
        settings = settings or self._settings_store.get()
        if not query_text:
            self.logging.debug("No text to query the Data Bank with.")
            return

        try:
            query_results = await self._vector_client.do_query_multiple(
                collection_ids, query_text, settings.chunk_count_db, settings.score_threshold, settings,
            )
        except Exception as e:
            self.logging.error("Failed to insert Data Bank chunks: %s", e)
            self._notifications.notify("error", "Failed to insert Data Bank chunks", get_error_message(e))
            return

        seen: set[str] = set()
        blocks: list[str] = []
        for collection_id, result in query_results.items():
            texts = [text for text in result.get_texts_by_index() if text not in seen]
            seen.update(texts)
            if texts:
                blocks.append("\n".join(texts))
            self.logging.debug("Data Bank collection '%s' returned %d chunks.", collection_id, len(texts))

        if not blocks:
            self.logging.debug("No Data Bank chunks found.")
            return

        inserted_text = render_template(settings.file_template_db, {"text": "\n\n".join(blocks)})
        self._prompt_slots.set_extension_prompt(
            EXTENSION_PROMPT_TAG_DB, inserted_text, settings.file_position_db, settings.file_depth_db,
            settings.include_wi, settings.file_depth_role_db,
        )

    async def retrieve_file_chunks(self, query_text: str, collection_id: str, settings: VectorSettings | None = None) -> str:
        """Return the most relevant chunks of one file, in file order. Empty without query text."""
        settings = settings or self._settings_store.get()
        if not query_text:
            return ""
        query_result = await self._vector_client.do_query(
            collection_id, query_text, settings.chunk_count, settings.score_threshold, settings,
        )
        self.logging.debug("Retrieved %d file chunks for '%s'.", len(query_result.hashes), collection_id)
        return "\n".join(query_result.get_texts_by_index())

    async def search_data_bank(
        self,
        query: str,
        attachments: list[FileAttachment],
        threshold: float | None = None,
        source: str | None = None,
    ) -> list[str]:
        """Find the Data Bank files with content similar to a query.

        Args:
            query (str): The search text.
            attachments (list[FileAttachment]): The Data Bank files.
            threshold (float | None): Minimum similarity, clamped to [0, 1]; the configured score_threshold if None.
            source (str | None): Only search files of this scope.

        Returns:
            list[str]: URLs of the files with at least one match.

        Raises:
            VectorSourceError: If the vector source is misconfigured.
            ClientRequestError: If a remote call fails.
        """
        settings = self._settings_store.get()
        if threshold is None or math.isnan(threshold):
            threshold = settings.score_threshold
        threshold = min(1.0, max(0.0, threshold))

        collection_ids = await self._sync_service.ingest_data_bank_attachments(attachments, source, settings)
        if not collection_ids:
            return []

        query_results = await self._vector_client.do_query_multiple(collection_ids, query, settings.chunk_count_db, threshold, settings)
        urls_by_collection = {get_file_collection_id(file.url): file.url for file in attachments}
        return [
            urls_by_collection[collection_id]
            for collection_id, result in query_results.items()
            if result.hashes and collection_id in urls_by_collection
        ]

    ##########################################
    ############### WORLD INFO ###############
    ##########################################

    async def activate_world_info(
        self,
        messages: list[ChatMessage],
        entries: list[WorldInfoEntry],
        settings: VectorSettings | None = None,
    ) -> list[WorldInfoEntry]:
        """Synchronize World Info and return the entries relevant to the latest messages.

        Returns:
            list[WorldInfoEntry]: Entries whose content was matched; the caller force-activates them.
        """
        settings = settings or self._settings_store.get()
        if not entries:
            self.logging.debug("No World Info entries found.")
            return []

        collection_ids = await self._sync_service.synchronize_world_info(entries, settings)
        if not collection_ids:
            return []

        query_text = await self.get_query_text(messages, settings)
        if not query_text:
            self.logging.debug("No text to query for World Info.")
            return []

        query_results = await self._vector_client.do_query_multiple(
            collection_ids, query_text, settings.max_entries, settings.score_threshold, settings,
        )
        activated_hashes = {value for result in query_results.values() for value in result.hashes}
        activated = [entry for entry in entries if entry.content and get_string_hash(entry.content) in activated_hashes]

        if activated:
            self.logging.info("Activated %d World Info entries.", len(activated))
        else:
            self.logging.debug("No activated World Info entries found.")
        return activated
