"""Pydantic models for the chat data the front end hands to the bridge."""

from pydantic import BaseModel, ConfigDict, Field


class FileAttachment(BaseModel):
    """A file attached to a chat message or stored in the Data Bank.

    Attributes:
        url: Server-relative URL the file text is fetched from. Also the collection key seed.
        name: Display name.
        size: Size of the text in bytes.
        source: Data Bank scope ("global", "character" or "chat"); None for message attachments.
        disabled: Disabled Data Bank files are never ingested or queried.
    """

    url: str
    name: str = ""
    size: int = 0
    source: str | None = None
    disabled: bool = False


class MessageExtra(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    file: FileAttachment | None = None
    # length of the file text the front end prepended to the message
    file_length: int | None = Field(default=None, alias="fileLength")


class ChatMessage(BaseModel):
    """A single transcript entry."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    mes: str = ""
    is_user: bool = False
    is_system: bool = False
    extra: MessageExtra = Field(default_factory=MessageExtra)


class WorldInfoEntry(BaseModel):
    """A knowledge-base entry. Entries are grouped into collections by world."""

    model_config = ConfigDict(extra="allow")

    uid: int
    world: str | None = None
    content: str = ""
    disable: bool = False
    vectorized: bool = False
