from shared.clients.vector.VectorClientInterface import VectorClientInterface
from shared.clients.vector.models.VectorItem import VectorItem
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.settings import VectorSettings, VectorSource

_SECRET_KEYS: dict[VectorSource, str] = {
    VectorSource.OPENAI: "api_key_openai",
    VectorSource.PALM: "api_key_makersuite",
    VectorSource.MISTRAL: "api_key_mistralai",
    VectorSource.TOGETHERAI: "api_key_togetherai",
    VectorSource.NOMICAI: "api_key_nomicai",
    VectorSource.COHERE: "api_key_cohere",
}


class VectorClientTavern(VectorClientInterface):
    """Client for the vector endpoints of a Tavern-style chat server (/api/vector/*)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._use_csrf = self.get_config_val("CSRF", default=True, val_type="bool")
        self._ollama_url = self.get_config_val("OLLAMA_URL", default="", val_type="string")
        self._llamacpp_url = self.get_config_val("LLAMACPP_URL", default="", val_type="string")
        self._extras_url = self.get_config_val("EXTRAS_URL", default="", val_type="string")
        self._extras_key = self.get_config_val("EXTRAS_KEY", default="", val_type="string")
        self._csrf_token: str | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Tavern"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="CSRF", val_type="bool", default=True),
            EnvConfig(env_key="OLLAMA_URL", val_type="string", default=""),
            EnvConfig(env_key="LLAMACPP_URL", val_type="string", default=""),
            EnvConfig(env_key="EXTRAS_URL", val_type="string", default=""),
            EnvConfig(env_key="EXTRAS_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._csrf_token:
            return {"X-CSRF-Token": self._csrf_token}
        return {}

    ################ SOURCES ##################
    def _get_secret_key(self, source: VectorSource) -> str | None:
        return _SECRET_KEYS.get(source)

    def get_source_url(self, source: VectorSource) -> str | None:
        if source == VectorSource.OLLAMA:
            return self._ollama_url or None
        if source == VectorSource.LLAMACPP:
            return self._llamacpp_url or None
        return None

    def _get_source_headers(self, settings: VectorSettings) -> dict:
        source = settings.source
        if source == VectorSource.EXTRAS:
            return {"X-Extras-Url": self._extras_url, "X-Extras-Key": self._extras_key}
        if source == VectorSource.TOGETHERAI:
            return {"X-Togetherai-Model": settings.togetherai_model}
        if source == VectorSource.OPENAI:
            return {"X-OpenAI-Model": settings.openai_model}
        if source == VectorSource.COHERE:
            return {"X-Cohere-Model": settings.cohere_model}
        if source == VectorSource.OLLAMA:
            return {
                "X-Ollama-Model": settings.ollama_model,
                "X-Ollama-URL": self._ollama_url,
                "X-Ollama-Keep": "true" if settings.ollama_keep else "false",
            }
        if source == VectorSource.LLAMACPP:
            return {"X-LlamaCpp-URL": self._llamacpp_url}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_csrf_token(self) -> str:
        return "/csrf-token"

    def _get_endpoint_secret_state(self) -> str:
        return "/api/secrets/read"

    def _get_endpoint_list(self) -> str:
        return "/api/vector/list"

    def _get_endpoint_insert(self) -> str:
        return "/api/vector/insert"

    def _get_endpoint_delete(self) -> str:
        return "/api/vector/delete"

    def _get_endpoint_query(self) -> str:
        return "/api/vector/query"

    def _get_endpoint_query_multi(self) -> str:
        return "/api/vector/query-multi"

    def _get_endpoint_purge(self) -> str:
        return "/api/vector/purge"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_list_payload(self, collection_id: str, settings: VectorSettings) -> dict:
        return {"collectionId": collection_id, "source": settings.source.value}

    def get_insert_payload(self, collection_id: str, items: list[VectorItem], settings: VectorSettings) -> dict:
        return {
            "collectionId": collection_id,
            "items": [item.model_dump() for item in items],
            "source": settings.source.value,
        }

    def get_delete_payload(self, collection_id: str, hashes: list[int], settings: VectorSettings) -> dict:
        return {"collectionId": collection_id, "hashes": hashes, "source": settings.source.value}

    def get_query_payload(self, collection_id: str, search_text: str, top_k: int, threshold: float, settings: VectorSettings) -> dict:
        return {
            "collectionId": collection_id,
            "searchText": search_text,
            "topK": top_k,
            "source": settings.source.value,
            "threshold": threshold,
        }

    def get_query_multi_payload(self, collection_ids: list[str], search_text: str, top_k: int, threshold: float, settings: VectorSettings) -> dict:
        return {
            "collectionIds": collection_ids,
            "searchText": search_text,
            "topK": top_k,
            "source": settings.source.value,
            "threshold": threshold,
        }

    def get_purge_payload(self, collection_id: str) -> dict:
        return {"collectionId": collection_id}

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport=None) -> None:
        """Initialise the HTTP client and, unless disabled, fetch a CSRF token.

        The token is bound to the session cookie the server sets on the same
        response; httpx keeps that cookie on the client.
        """
        await super().boot(transport=transport)
        if not self._use_csrf:
            return
        answer = await self.do_json_request(method="GET", endpoint=self._get_endpoint_csrf_token()) or {}
        self._csrf_token = answer.get("token")
        self.logging.debug("Fetched CSRF token from %s", self._base_url)
