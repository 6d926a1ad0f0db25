"""Synchronisation service.

Keeps the collections of the vector store consistent with their local
sources. Each collection is reconciled by hash: the remote hash list is
fetched, compared with the hashed local items, new items are chunked and
inserted one batch at a time and stale hashes are deleted. This service is
the only writer of the vector store.
"""

import asyncio
import time

from shared.clients.files.FileClientInterface import FileClientInterface
from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.clients.vector.VectorErrors import get_error_message
from shared.clients.vector.models.VectorItem import VectorItem
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatMessage, FileAttachment, WorldInfoEntry
from shared.models.memory import ChatStats, FileBatchResult, VectorizeProgress
from shared.models.settings import VectorSettings
from shared.utils.chunking import split_recursive
from shared.utils.hashing import get_file_collection_id, get_string_hash, get_world_collection_id
from services.vector_memory.ChatContext import ChatContext
from services.vector_memory.CollectionDiffer import diff_collection
from services.vector_memory.NotificationLog import NotificationLog
from services.vector_memory.SettingsStore import SettingsStore
from services.vector_memory.SummarizeService import SummarizeService

BATCH_SIZE = 5          # items inserted per synchronize call
ETA_WINDOW = 5          # synchronize calls averaged for the ETA
KILOBYTE = 1024


class SyncService:
    """Orchestrates hash-diff synchronisation of chat, file and World Info collections."""

    def __init__(
        self,
        helper_config: HelperConfig,
        vector_client: VectorClientInterface,
        file_client: FileClientInterface,
        settings_store: SettingsStore,
        chat_context: ChatContext,
        notifications: NotificationLog,
        summarizer: SummarizeService,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._vector_client = vector_client
        self._file_client = file_client
        self._settings_store = settings_store
        self._chat_context = chat_context
        self._notifications = notifications
        self._summarizer = summarizer

        # one synchronize at a time, across all collections
        self._lock = asyncio.Lock()

    ##########################################
    ############### CORE SYNC ################
    ##########################################

    def is_blocked(self) -> bool:
        """Returns True if a synchronize call is running or a generation is in progress."""
        return self._lock.locked() or self._chat_context.is_generating()

    async def synchronize(
        self,
        collection_id: str,
        local_items: list[VectorItem],
        batch_size: int = BATCH_SIZE,
        settings: VectorSettings | None = None,
    ) -> int | None:
        """Move a collection one batch closer to its local source.

        Args:
            collection_id (str): The collection key.
            local_items (list[VectorItem]): The complete hashed local source.
            batch_size (int): Maximum number of new items inserted by this call.
            settings (VectorSettings | None): Snapshot to use; the current settings if None.

        Returns:
            int | None: Number of new items left after this batch (<= 0 when the
                collection is complete), or None if the call was blocked and did nothing.

        Raises:
            ValueError: If batch_size is smaller than 1.
            VectorSourceError: If the vector source is misconfigured.
            ClientRequestError: If a remote call fails. Earlier steps are not rolled back.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}.")

        if self.is_blocked():
            self.logging.info("Synchronization of '%s' blocked by another process.", collection_id)
            return None

        async with self._lock:
            settings = settings or self._settings_store.get()
            hashes_in_collection = await self._vector_client.do_list(collection_id, settings)
            delta = diff_collection(local_items, hashes_in_collection)

            if delta.to_insert:
                batch = delta.to_insert[:batch_size]
                if settings.summarize:
                    batch = await self._summarize_items(batch, settings)
                chunked_batch = self._split_by_chunks(batch, settings.message_chunk_size)
                self.logging.info(
                    "Found %d new items for '%s'. Processing %d...",
                    len(delta.to_insert), collection_id, len(batch),
                )
                await self._vector_client.do_insert(collection_id, chunked_batch, settings)

            if delta.to_delete:
                await self._vector_client.do_delete(collection_id, delta.to_delete, settings)
                self.logging.info("Deleted %d old hashes from '%s'.", len(delta.to_delete), collection_id)

            return len(delta.to_insert) - batch_size

    async def _summarize_items(self, items: list[VectorItem], settings: VectorSettings) -> list[VectorItem]:
        """Replace item texts with summaries. Hashes stay those of the source text."""
        summaries = await self._summarizer.summarize_texts([item.text for item in items], settings)
        return [item.model_copy(update={"text": summary}) for item, summary in zip(items, summaries)]

    def _split_by_chunks(self, items: list[VectorItem], chunk_size: int) -> list[VectorItem]:
        if chunk_size <= 0:
            return items
        chunked: list[VectorItem] = []
        for item in items:
            chunks = split_recursive(item.text, chunk_size)
            if not chunks:
                # whitespace-only text splits into nothing
                chunked.append(item)
                continue
            chunked.extend(item.model_copy(update={"text": chunk}) for chunk in chunks)
        return chunked

    ##########################################
    ################# CHATS ##################
    ##########################################

    def build_chat_items(self, messages: list[ChatMessage]) -> list[VectorItem]:
        """Hash the non-system messages with visible text. index is the message position."""
        return [
            VectorItem(hash=get_string_hash(message.mes), text=message.mes, index=index)
            for index, message in enumerate(messages)
            if not message.is_system and message.mes.strip()
        ]

    async def synchronize_chat(
        self,
        chat_id: str | None,
        messages: list[ChatMessage],
        batch_size: int = BATCH_SIZE,
    ) -> int | None:
        """Synchronize one batch of a chat's messages.

        Failures are logged and turned into a notification.

        Returns:
            int | None: Remaining new items as in synchronize(), or None if chat
                memory is disabled, no chat is selected, the call was blocked or it failed.
        """
        settings = self._settings_store.get()
        if not settings.enabled_chats:
            return None

        if not chat_id:
            self.logging.debug("No chat selected, skipping synchronization.")
            return None

        try:
            return await self.synchronize(chat_id, self.build_chat_items(messages), batch_size, settings)
        except Exception as e:
            self.logging.error("Failed to synchronize chat '%s': %s", chat_id, e)
            self._notifications.notify("error", "Vectorization failed", get_error_message(e))
            return None

    async def vectorize_all(self, chat_id: str | None, messages: list[ChatMessage]) -> VectorizeProgress:
        """Synchronize a chat batch by batch until every message is stored.

        Stops early when the active chat changes, a generation starts, or a
        batch is blocked or fails. In-flight requests are never cancelled.

        Returns:
            VectorizeProgress: The progress reached when the loop ended.
        """
        progress = VectorizeProgress(chat_id=chat_id)
        if not self._settings_store.get().enabled_chats:
            progress.aborted_reason = "Chat vectorization is disabled."
            return progress

        if not chat_id:
            self._notifications.notify("info", "Vectorization aborted", "No chat selected")
            progress.aborted_reason = "No chat selected."
            return progress

        active_chat_id = self._chat_context.get_chat_id()
        progress.total = len(self.build_chat_items(messages))
        elapsed_log: list[float] = []

        while not progress.finished:
            if self._chat_context.is_generating():
                self._notifications.notify("info", "Vectorization aborted", "Message generation is in progress.")
                progress.aborted_reason = "Message generation is in progress."
                break

            start_time = time.monotonic()
            remaining = await self.synchronize_chat(chat_id, messages, BATCH_SIZE)
            elapsed_log.append(time.monotonic() - start_time)
            progress.batches += 1

            if remaining is None:
                progress.aborted_reason = "Synchronization was blocked or failed."
                break

            left = max(remaining, 0)
            progress.finished = remaining <= 0
            progress.processed = progress.total - left
            progress.percent = round(progress.processed / progress.total * 100) if progress.total else 100

            # average over the last calls, per item
            recent = elapsed_log[-ETA_WINDOW:]
            pace = sum(recent) / len(recent) / BATCH_SIZE
            progress.eta_seconds = round(pace * left)
            self.logging.info(
                "Vectorizing chat '%s': %d%% done, ETA %ds.",
                chat_id, progress.percent, progress.eta_seconds,
            )

            if self._chat_context.get_chat_id() != active_chat_id:
                progress.aborted_reason = "Chat changed."
                break

        if progress.aborted_reason:
            self.logging.warning("Vectorization of chat '%s' aborted: %s", chat_id, progress.aborted_reason)
        return progress

    async def get_stats(self, chat_id: str, messages: list[ChatMessage]) -> ChatStats:
        """Count the hashes of a chat collection and find the messages already stored."""
        settings = self._settings_store.get()
        hashes_in_collection = await self._vector_client.do_list(chat_id, settings)
        stored = set(hashes_in_collection)
        return ChatStats(
            chat_id=chat_id,
            total_hashes=len(hashes_in_collection),
            unique_hashes=len(stored),
            vectorized_indices=[
                index for index, message in enumerate(messages)
                if get_string_hash(message.mes) in stored
            ],
        )

    async def purge_chat(self, chat_id: str | None) -> bool:
        """Remove the collection of a chat.

        Returns:
            bool: True if purged (or chat memory is disabled), False on failure.
        """
        settings = self._settings_store.get()
        if not settings.enabled_chats:
            return True

        if not chat_id:
            self._notifications.notify("info", "Purge aborted", "No chat selected")
            return False

        try:
            await self._vector_client.do_purge(chat_id, settings)
        except Exception as e:
            self.logging.error("Failed to purge chat '%s': %s", chat_id, e)
            self._notifications.notify("error", "Purge failed", "Failed to purge vector index")
            return False

        self.logging.info("Purged vector index for collection '%s'.", chat_id)
        return True

    ##########################################
    ################# FILES ##################
    ##########################################

    async def vectorize_file(
        self,
        file_text: str,
        file_name: str,
        collection_id: str,
        chunk_size: int,
        settings: VectorSettings | None = None,
    ) -> bool:
        """Chunk a file and insert every chunk into its collection.

        Args:
            file_text (str): The file contents.
            file_name (str): Display name used in logs and notifications.
            collection_id (str): The file collection key.
            chunk_size (int): Maximum chunk length; <= 0 stores the file whole.

        Returns:
            bool: True on success, False if the file was empty or the insert failed.
        """
        settings = settings or self._settings_store.get()
        chunks = split_recursive(file_text, chunk_size)
        items = [VectorItem(hash=get_string_hash(chunk), text=chunk, index=index) for index, chunk in enumerate(chunks) if chunk]
        if not items:
            self.logging.warning("File '%s' has no text to vectorize.", file_name)
            return False

        self.logging.debug("Split file '%s' into %d chunks.", file_name, len(items))
        try:
            await self._vector_client.do_insert(collection_id, items, settings)
        except Exception as e:
            self.logging.error("Failed to vectorize file '%s': %s", file_name, e)
            self._notifications.notify("error", "Failed to vectorize file", get_error_message(e))
            return False

        self.logging.info("Inserted %d vector items for file '%s' into '%s'.", len(items), file_name, collection_id)
        return True

    def _get_data_bank_files(self, attachments: list[FileAttachment], source: str | None = None) -> list[FileAttachment]:
        return [file for file in attachments if not file.disabled and (not source or file.source == source)]

    async def ingest_data_bank_attachments(
        self,
        attachments: list[FileAttachment],
        source: str | None = None,
        settings: VectorSettings | None = None,
    ) -> list[str]:
        """Make sure every enabled Data Bank file has a populated collection.

        Files whose collection already holds items are not downloaded again.

        Args:
            attachments (list[FileAttachment]): The Data Bank files.
            source (str | None): Only ingest files of this scope ("global", "character", "chat").

        Returns:
            list[str]: The collection ids of all selected files.

        Raises:
            VectorSourceError: If the vector source is misconfigured.
            ClientRequestError: If listing a collection or fetching a file fails.
        """
        settings = settings or self._settings_store.get()
        collection_ids: list[str] = []

        for file in self._get_data_bank_files(attachments, source):
            collection_id = get_file_collection_id(file.url)
            hashes_in_collection = await self._vector_client.do_list(collection_id, settings)
            collection_ids.append(collection_id)

            if hashes_in_collection:
                continue

            file_text = await self._file_client.do_fetch_attachment(file.url)
            self.logging.info("Retrieved file '%s' from Data Bank.", file.name)
            chunk_size = settings.chunk_size_db if file.size > settings.size_threshold_db * KILOBYTE else -1
            await self.vectorize_file(file_text, file.name, collection_id, chunk_size, settings)

        return collection_ids

    async def vectorize_all_files(self, messages: list[ChatMessage], data_bank: list[FileAttachment]) -> FileBatchResult:
        """Vectorize every Data Bank file and chat attachment that has no collection yet.

        Failures are collected per file; one failing file does not stop the others.
        """
        settings = self._settings_store.get()
        result = FileBatchResult()

        chat_files = [message.extra.file for message in messages if message.extra.file]
        queue: list[tuple[FileAttachment, int]] = []
        for file in self._get_data_bank_files(data_bank):
            queue.append((file, settings.chunk_size_db if file.size > settings.size_threshold_db * KILOBYTE else -1))
        for file in chat_files:
            queue.append((file, settings.chunk_size if file.size > settings.size_threshold * KILOBYTE else -1))

        for file, chunk_size in queue:
            collection_id = get_file_collection_id(file.url)
            try:
                if await self._vector_client.do_list(collection_id, settings):
                    self.logging.info("File '%s' is already vectorized.", file.name)
                    result.skipped.append(file.url)
                    continue
                file_text = await self._file_client.do_fetch_attachment(file.url)
                success = await self.vectorize_file(file_text, file.name, collection_id, chunk_size, settings)
            except Exception as e:
                self.logging.error("Failed to vectorize file '%s': %s", file.name, e)
                success = False

            if success:
                result.vectorized.append(file.url)
            else:
                result.failed.append(file.url)

        if result.failed:
            self._notifications.notify(
                "warning",
                "Vector Storage",
                "Some files failed to vectorize. Check server console for more details.",
            )
        else:
            self._notifications.notify("success", "Vectorization successful", "All files vectorized")
        return result

    async def purge_file(self, file_url: str) -> bool:
        """Remove the collection of one file. Does nothing while file vectorization is disabled.

        Returns:
            bool: True if the collection was purged.
        """
        settings = self._settings_store.get()
        if not settings.enabled_files:
            return False

        collection_id = get_file_collection_id(file_url)
        self.logging.info("Purging file vector index for '%s'.", file_url)
        try:
            await self._vector_client.do_purge(collection_id, settings)
        except Exception as e:
            self.logging.error("Failed to purge file '%s': %s", file_url, e)
            return False

        self.logging.info("Purged vector index for collection '%s'.", collection_id)
        return True

    async def purge_files(self, file_urls: list[str]) -> list[str]:
        """Purge several file collections.

        Returns:
            list[str]: The URLs whose collections were purged.
        """
        purged = [url for url in dict.fromkeys(file_urls) if await self.purge_file(url)]
        if len(purged) == len(set(file_urls)):
            self._notifications.notify("success", "Purge successful", "All files purged")
        else:
            self._notifications.notify("error", "Purge failed", "Failed to purge all files")
        return purged

    ##########################################
    ############### WORLD INFO ###############
    ##########################################

    def _group_world_info(self, entries: list[WorldInfoEntry], settings: VectorSettings) -> dict[str, list[WorldInfoEntry]]:
        grouped: dict[str, list[WorldInfoEntry]] = {}
        for entry in entries:
            if not entry.world:
                self.logging.debug("Skipped orphaned World Info entry %s.", entry.uid)
                continue
            if entry.disable:
                self.logging.debug("Skipped disabled World Info entry %s.", entry.uid)
                continue
            if not entry.content:
                self.logging.debug("Skipped World Info entry %s without content.", entry.uid)
                continue
            if not entry.vectorized and not settings.enabled_for_all:
                self.logging.debug("Skipped non-vectorized World Info entry %s.", entry.uid)
                continue
            grouped.setdefault(entry.world, []).append(entry)
        return grouped

    async def synchronize_world_info(
        self,
        entries: list[WorldInfoEntry],
        settings: VectorSettings | None = None,
    ) -> list[str]:
        """Reconcile one collection per world with its eligible entries.

        Returns:
            list[str]: The collection ids of all synchronized worlds.

        Raises:
            VectorSourceError: If the vector source is misconfigured.
            ClientRequestError: If a remote call fails.
        """
        settings = settings or self._settings_store.get()
        grouped = self._group_world_info(entries, settings)
        if not grouped:
            self.logging.debug("No World Info entries to synchronize.")
            return []

        collection_ids: list[str] = []
        for world, world_entries in grouped.items():
            collection_id = get_world_collection_id(world)
            items = [
                VectorItem(hash=get_string_hash(entry.content), text=entry.content, index=entry.uid)
                for entry in world_entries
            ]
            hashes_in_collection = await self._vector_client.do_list(collection_id, settings)
            delta = diff_collection(items, hashes_in_collection)

            if delta.to_insert:
                self.logging.info("Found %d new World Info entries for world '%s'.", len(delta.to_insert), world)
                await self._vector_client.do_insert(collection_id, delta.to_insert, settings)

            if delta.to_delete:
                self.logging.info("Deleted %d old hashes for world '%s'.", len(delta.to_delete), world)
                await self._vector_client.do_delete(collection_id, delta.to_delete, settings)

            collection_ids.append(collection_id)

        return collection_ids
