"""Vector memory settings.

A single frozen model holds every knob the synchronizer and the retrieval
injector read. Services take one snapshot per operation; changes produce a
new validated instance (see SettingsStore).
"""

from enum import Enum, IntEnum

from pydantic import BaseModel, Field


class VectorSource(str, Enum):
    """Embedding backends the vector service can use."""

    TRANSFORMERS = "transformers"
    OPENAI = "openai"
    COHERE = "cohere"
    TOGETHERAI = "togetherai"
    MISTRAL = "mistral"
    PALM = "palm"
    NOMICAI = "nomicai"
    OLLAMA = "ollama"
    LLAMACPP = "llamacpp"
    EXTRAS = "extras"


class SummarySource(str, Enum):
    """Where message summaries come from."""

    MAIN = "main"
    EXTRAS = "extras"


class PromptPosition(IntEnum):
    """Where an extension prompt is placed in the outgoing prompt."""

    NONE = -1
    IN_PROMPT = 0
    IN_CHAT = 1
    BEFORE_PROMPT = 2


class PromptRole(IntEnum):
    """Message role used for in-chat extension prompts."""

    SYSTEM = 0
    USER = 1
    ASSISTANT = 2


DEFAULT_SUMMARY_PROMPT = (
    "Pause your roleplay. Summarize the most important parts of the message. "
    "Limit yourself to 250 words or less. Your response should include nothing but the summary."
)


class VectorSettings(BaseModel):
    """Configuration snapshot for vector memory.

    Size thresholds are in kilobytes of text; chunk sizes are in characters.
    A chunk size <= 0 disables splitting.
    """

    model_config = {"frozen": True, "extra": "ignore", "use_enum_values": False}

    # For both
    source: VectorSource = VectorSource.TRANSFORMERS
    include_wi: bool = False
    togetherai_model: str = "togethercomputer/m2-bert-80M-32k-retrieval"
    openai_model: str = "text-embedding-ada-002"
    cohere_model: str = "embed-english-v3.0"
    ollama_model: str = "mxbai-embed-large"
    ollama_keep: bool = False
    summarize: bool = False
    summarize_sent: bool = False
    summary_source: SummarySource = SummarySource.MAIN
    summary_prompt: str = DEFAULT_SUMMARY_PROMPT

    # For chats
    enabled_chats: bool = False
    template: str = "Past events:\n{{text}}"
    depth: int = Field(default=2, ge=0)
    position: PromptPosition = PromptPosition.IN_PROMPT
    protect: int = Field(default=5, ge=0)
    insert: int = Field(default=3, ge=0)
    query: int = Field(default=2, ge=0)
    message_chunk_size: int = 400
    score_threshold: float = Field(default=0.25, ge=0.0, le=1.0)

    # For files
    enabled_files: bool = False
    size_threshold: float = Field(default=10, ge=0)
    chunk_size: int = 5000
    chunk_count: int = Field(default=2, ge=1)

    # For Data Bank
    size_threshold_db: float = Field(default=5, ge=0)
    chunk_size_db: int = 2500
    chunk_count_db: int = Field(default=5, ge=1)
    file_template_db: str = "Related information:\n{{text}}"
    file_position_db: PromptPosition = PromptPosition.IN_PROMPT
    file_depth_db: int = Field(default=4, ge=0)
    file_depth_role_db: PromptRole = PromptRole.SYSTEM

    # For World Info
    enabled_world_info: bool = False
    enabled_for_all: bool = False
    max_entries: int = Field(default=5, ge=1)
