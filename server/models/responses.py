from pydantic import BaseModel

from services.vector_memory.NotificationLog import Notification


class ContextResponse(BaseModel):
    chat_id: str | None
    generating: bool


class SyncResponse(BaseModel):
    chat_id: str | None
    # None when disabled, blocked or failed
    remaining: int | None


class PurgeResponse(BaseModel):
    purged: bool


class FilesPurgeResponse(BaseModel):
    purged: list[str]


class DataBankIngestResponse(BaseModel):
    collection_ids: list[str]


class DataBankSearchResponse(BaseModel):
    query: str
    urls: list[str]
    total: int


class NotificationsResponse(BaseModel):
    notifications: list[Notification]
    total: int
