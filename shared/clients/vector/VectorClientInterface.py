from abc import abstractmethod
from typing import Any, Awaitable, Callable

from shared.clients.ClientErrors import ClientRequestError
from shared.clients.ClientInterface import ClientInterface
from shared.clients.vector.VectorErrors import VectorErrorCause, VectorSourceError
from shared.clients.vector.models.QueryResult import QueryResult
from shared.clients.vector.models.VectorItem import VectorItem
from shared.helper.HelperConfig import HelperConfig
from shared.models.settings import VectorSettings, VectorSource

# sources whose embeddings need an API key stored on the vector server
KEYED_SOURCES = (
    VectorSource.OPENAI,
    VectorSource.PALM,
    VectorSource.MISTRAL,
    VectorSource.TOGETHERAI,
    VectorSource.NOMICAI,
    VectorSource.COHERE,
)
# sources that embed through a self-hosted text generation server
URL_SOURCES = (VectorSource.OLLAMA, VectorSource.LLAMACPP)
EXTRAS_EMBEDDINGS_MODULE = "embeddings"


class VectorClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # remote state used to validate the source before each request
        self._secret_state: dict[str, bool] = {}
        self._extras_modules: list[str] = []
        self._extras_modules_loader: Callable[[], Awaitable[list[str]]] | None = None

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_source(self, settings: VectorSettings) -> None:
        """Fail fast if the selected source cannot possibly serve a request.

        Args:
            settings (VectorSettings): The settings snapshot carrying the source and model names.

        Raises:
            VectorSourceError: With the cause api_key_missing, api_url_missing,
                api_model_missing or extras_module_missing.
        """
        source = settings.source
        if source in KEYED_SOURCES and not self.has_secret(source):
            raise VectorSourceError("Vectors: API key missing", cause=VectorErrorCause.API_KEY_MISSING)

        if source in URL_SOURCES and not self.get_source_url(source):
            raise VectorSourceError("Vectors: API URL missing", cause=VectorErrorCause.API_URL_MISSING)

        if source == VectorSource.OLLAMA and not settings.ollama_model:
            raise VectorSourceError("Vectors: API model missing", cause=VectorErrorCause.API_MODEL_MISSING)

        if source == VectorSource.EXTRAS and EXTRAS_EMBEDDINGS_MODULE not in self._extras_modules:
            raise VectorSourceError("Vectors: Embeddings module missing", cause=VectorErrorCause.EXTRAS_MODULE_MISSING)

    def has_secret(self, source: VectorSource) -> bool:
        """Returns True if the vector server reported a stored API key for the source."""
        secret_key = self._get_secret_key(source)
        return bool(secret_key and self._secret_state.get(secret_key))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "vector"

    ################ SOURCES ##################
    @abstractmethod
    def _get_secret_key(self, source: VectorSource) -> str | None:
        """
        Returns the name under which the vector server stores the API key of a source.

        Returns:
            str | None: The secret key name, or None if the source needs no key.
        """
        pass

    @abstractmethod
    def get_source_url(self, source: VectorSource) -> str | None:
        """
        Returns the server URL a self-hosted source embeds with (ollama, llamacpp).

        Returns:
            str | None: The configured URL, or None if not configured.
        """
        pass

    @abstractmethod
    def _get_source_headers(self, settings: VectorSettings) -> dict:
        """
        Returns the source-specific headers (model names, URLs) for a request.

        Args:
            settings (VectorSettings): The settings snapshot.

        Returns:
            dict: Headers to attach to the request.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_list(self) -> str:
        """Returns the endpoint path for listing the hashes of a collection."""
        pass

    @abstractmethod
    def _get_endpoint_insert(self) -> str:
        """Returns the endpoint path for inserting items."""
        pass

    @abstractmethod
    def _get_endpoint_delete(self) -> str:
        """Returns the endpoint path for deleting items by hash."""
        pass

    @abstractmethod
    def _get_endpoint_query(self) -> str:
        """Returns the endpoint path for querying a single collection."""
        pass

    @abstractmethod
    def _get_endpoint_query_multi(self) -> str:
        """Returns the endpoint path for querying several collections at once."""
        pass

    @abstractmethod
    def _get_endpoint_purge(self) -> str:
        """Returns the endpoint path for removing a whole collection."""
        pass

    @abstractmethod
    def _get_endpoint_secret_state(self) -> str:
        """Returns the endpoint path reporting which API keys the server stores."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_list_payload(self, collection_id: str, settings: VectorSettings) -> dict:
        pass

    @abstractmethod
    def get_insert_payload(self, collection_id: str, items: list[VectorItem], settings: VectorSettings) -> dict:
        pass

    @abstractmethod
    def get_delete_payload(self, collection_id: str, hashes: list[int], settings: VectorSettings) -> dict:
        pass

    @abstractmethod
    def get_query_payload(self, collection_id: str, search_text: str, top_k: int, threshold: float, settings: VectorSettings) -> dict:
        pass

    @abstractmethod
    def get_query_multi_payload(self, collection_ids: list[str], search_text: str, top_k: int, threshold: float, settings: VectorSettings) -> dict:
        pass

    @abstractmethod
    def get_purge_payload(self, collection_id: str) -> dict:
        pass

    ##########################################
    ################# SETTER #################
    ##########################################

    def set_secret_state(self, secret_state: dict[str, bool]) -> None:
        """Replace the known secret state (secret key name -> stored)."""
        self._secret_state = dict(secret_state)

    def set_extras_modules(self, modules: list[str]) -> None:
        """Replace the list of modules the Extras API reported."""
        self._extras_modules = list(modules)

    def set_extras_modules_loader(self, loader: Callable[[], Awaitable[list[str]]] | None) -> None:
        """Set the coroutine function that re-reads the Extras module list, e.g. ExtrasClientInterface.do_fetch_modules."""
        self._extras_modules_loader = loader

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_refresh_secret_state(self) -> dict[str, bool]:
        """Fetch which API keys the vector server has stored and cache the result.

        Returns:
            dict[str, bool]: Secret key name -> stored.
        """
        state = await self.do_json_request(method="POST", endpoint=self._get_endpoint_secret_state()) or {}
        self.set_secret_state({key: bool(value) for key, value in state.items()})
        return self._secret_state

    async def _refresh_source_state(self, cause: VectorErrorCause) -> bool:
        """Re-read the remote state a failed source check depends on.

        Returns:
            bool: True if the state was read. A failed read keeps the cached state.
        """
        try:
            if cause == VectorErrorCause.API_KEY_MISSING:
                await self.do_refresh_secret_state()
                return True
            if cause == VectorErrorCause.EXTRAS_MODULE_MISSING and self._extras_modules_loader is not None:
                self.set_extras_modules(await self._extras_modules_loader())
                return True
        except ClientRequestError as e:
            self.logging.warning("Could not refresh the %s state: %s", cause.value, e)
        return False

    async def ensure_source(self, settings: VectorSettings) -> None:
        """validate_source(), re-reading stored API keys or Extras modules once before giving up.

        Raises:
            VectorSourceError: If the source is still misconfigured.
        """
        try:
            self.validate_source(settings)
        except VectorSourceError as e:
            if not await self._refresh_source_state(e.cause):
                raise
            self.validate_source(settings)

    async def _do_vector_request(self, endpoint: str, payload: dict, settings: VectorSettings, decode: bool = True) -> Any:
        """Validate the source, then POST a vector API request.

        Write endpoints answer with a plain status text, so only reads are decoded.

        Raises:
            VectorSourceError: If the source is misconfigured. No vector request is sent.
            ClientRequestError: If the request fails or returns a non-2xx status.
        """
        await self.ensure_source(settings)
        headers = self._get_source_headers(settings)
        if decode:
            return await self.do_json_request(method="POST", endpoint=endpoint, payload=payload, additional_headers=headers)
        await self.do_request(method="POST", endpoint=endpoint, json=payload, additional_headers=headers, raise_on_error=True)
        return None

    async def do_list(self, collection_id: str, settings: VectorSettings) -> list[int]:
        """List every hash stored in a collection.

        Args:
            collection_id (str): The collection key.
            settings (VectorSettings): The settings snapshot.

        Returns:
            list[int]: The stored hashes, in server order.
        """
        hashes = await self._do_vector_request(
            self._get_endpoint_list(),
            self.get_list_payload(collection_id, settings),
            settings,
        )
        return [int(value) for value in hashes or []]

    async def do_insert(self, collection_id: str, items: list[VectorItem], settings: VectorSettings) -> None:
        """Upsert items into a collection. Re-inserting a hash overwrites it.

        Args:
            collection_id (str): The collection key.
            items (list[VectorItem]): Items to embed and store.
            settings (VectorSettings): The settings snapshot.
        """
        await self._do_vector_request(
            self._get_endpoint_insert(),
            self.get_insert_payload(collection_id, items, settings),
            settings,
            decode=False,
        )

    async def do_delete(self, collection_id: str, hashes: list[int], settings: VectorSettings) -> None:
        """Delete items by hash. Unknown hashes are ignored by the server.

        Args:
            collection_id (str): The collection key.
            hashes (list[int]): Hashes to remove.
            settings (VectorSettings): The settings snapshot.
        """
        await self._do_vector_request(
            self._get_endpoint_delete(),
            self.get_delete_payload(collection_id, hashes, settings),
            settings,
            decode=False,
        )

    async def do_query(self, collection_id: str, search_text: str, top_k: int, threshold: float, settings: VectorSettings) -> QueryResult:
        """Query one collection for the items most similar to a text.

        Args:
            collection_id (str): The collection key.
            search_text (str): The text to compare against.
            top_k (int): Maximum number of results.
            threshold (float): Minimum similarity score.
            settings (VectorSettings): The settings snapshot.

        Returns:
            QueryResult: Matches ordered most similar first.
        """
        result = await self._do_vector_request(
            self._get_endpoint_query(),
            self.get_query_payload(collection_id, search_text, top_k, threshold, settings),
            settings,
        )
        return QueryResult.model_validate(result or {})

    async def do_query_multiple(self, collection_ids: list[str], search_text: str, top_k: int, threshold: float, settings: VectorSettings) -> dict[str, QueryResult]:
        """Query several collections, each ranked independently.

        Returns:
            dict[str, QueryResult]: Results keyed by collection id.
        """
        raw = await self._do_vector_request(
            self._get_endpoint_query_multi(),
            self.get_query_multi_payload(collection_ids, search_text, top_k, threshold, settings),
            settings,
        )
        return {collection_id: QueryResult.model_validate(result) for collection_id, result in (raw or {}).items()}

    async def do_purge(self, collection_id: str, settings: VectorSettings) -> None:
        """Remove a whole collection.

        Args:
            collection_id (str): The collection key.
            settings (VectorSettings): The settings snapshot.
        """
        await self._do_vector_request(
            self._get_endpoint_purge(),
            self.get_purge_payload(collection_id),
            settings,
            decode=False,
        )
