"""Result models of the vector memory services."""

from pydantic import BaseModel

from shared.models.chat import ChatMessage, WorldInfoEntry
from shared.models.settings import PromptPosition, PromptRole


class VectorizeProgress(BaseModel):
    """Outcome of a vectorize-all run.

    Attributes:
        chat_id: The chat that was vectorized.
        total: Number of messages eligible for the collection.
        processed: Messages stored so far.
        percent: processed / total as a rounded percentage.
        eta_seconds: Projected time for the remaining messages, from the last five batches.
        batches: Number of synchronize calls made.
        finished: True once nothing was left to insert.
        aborted_reason: Why the run stopped early, if it did.
    """

    chat_id: str | None = None
    total: int = 0
    processed: int = 0
    percent: int = 0
    eta_seconds: int | None = None
    batches: int = 0
    finished: bool = False
    aborted_reason: str | None = None


class FileBatchResult(BaseModel):
    vectorized: list[str] = []
    skipped: list[str] = []
    failed: list[str] = []


class ChatStats(BaseModel):
    chat_id: str
    total_hashes: int
    unique_hashes: int
    # positions of messages whose text is stored in the collection
    vectorized_indices: list[int] = []


class PromptSlot(BaseModel):
    """An extension prompt as the prompt builder places it."""

    tag: str
    text: str = ""
    position: PromptPosition = PromptPosition.IN_PROMPT
    depth: int = 0
    include_wi: bool = False
    role: PromptRole = PromptRole.SYSTEM


class RearrangeResult(BaseModel):
    """What the generation interceptor hands back to the prompt builder."""

    messages: list[ChatMessage]
    prompts: dict[str, PromptSlot] = {}
    activated_entries: list[WorldInfoEntry] = []
