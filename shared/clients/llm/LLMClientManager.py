from shared.clients.ClientManager import ClientManager
from shared.clients.llm.LLMClientInterface import LLMClientInterface


class LLMClientManager(ClientManager):
    """Builds the optional LLM client. Without LLM_ENGINE "main" summaries are unavailable."""

    env_key = "LLM_ENGINE"
    package = "llm"
    class_prefix = "LLMClient"

    def get_client(self) -> LLMClientInterface | None:
        return self.client
