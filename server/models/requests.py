from pydantic import BaseModel, Field

from shared.models.chat import ChatMessage, FileAttachment, WorldInfoEntry


class ContextRequest(BaseModel):
    chat_id: str | None = None
    generating: bool = False


class ChatRequest(BaseModel):
    # falls back to the active chat of the context
    chat_id: str | None = None
    messages: list[ChatMessage] = []


class MemorySyncRequest(ChatRequest):
    batch_size: int = Field(default=5, ge=1)


class RearrangeRequest(ChatRequest):
    data_bank: list[FileAttachment] = []
    world_info: list[WorldInfoEntry] = []


class FilesRequest(BaseModel):
    messages: list[ChatMessage] = []
    data_bank: list[FileAttachment] = []


class FilePurgeRequest(BaseModel):
    url: str


class DataBankRequest(BaseModel):
    attachments: list[FileAttachment] = []
    source: str | None = None


class DataBankSearchRequest(DataBankRequest):
    query: str
    threshold: float | None = None
