from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientOllama(LLMClientInterface):
    """Ollama /api/chat backend. An API key is only needed behind an authenticating proxy."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="CHAT_MODEL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_generate(self) -> str:
        return "/api/chat"

    ################ PAYLOAD BUILDER ##################
    def get_generate_payload(self, messages: list[dict]) -> dict:
        options: dict = {"temperature": self.temperature}
        if self.max_tokens > 0:
            options["num_predict"] = self.max_tokens
        return {"model": self.chat_model, "messages": messages, "stream": False, "options": options}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_reply(self, response_data: dict) -> str:
        content = (response_data.get("message") or {}).get("content")
        if content is None:
            raise ValueError(f"Ollama reply has no message content. Keys: {sorted(response_data)}")
        return content
