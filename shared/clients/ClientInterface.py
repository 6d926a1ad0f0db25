from abc import ABC, abstractmethod
from typing import Any

import httpx

from shared.clients.ClientErrors import ClientRequestError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """Base of every HTTP collaborator (vector API, file server, LLM, Extras).

    Configuration keys are namespaced as <CLIENT_TYPE>_<ENGINE>_<KEY> and the
    required ones are checked on construction, so a misconfigured client fails
    at startup instead of on the first request.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)
        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every required configuration key once.

        Raises:
            ValueError: If a required key is missing or has the wrong type.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the kind of collaborator, e.g. "vector" or "file".
        """
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the backend implementation name, e.g. "Tavern".
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads a client-scoped configuration value.

        Args:
            raw_key (str): Key without the client prefix, e.g. "BASE_URL".
            default (Any): Returned when the key is unset. None makes the key required.
            val_type (str): One of "string", "number", "bool", "list".

        Returns:
            Any: The parsed value.
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        reader = readers.get(val_type)
        if reader is None:
            raise ValueError(f"Unsupported config value type '{val_type}' for {self._get_config_key_name(raw_key)}.")
        return reader(self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the headers that authenticate a request, empty when no credentials are configured.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        pass

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Create the HTTP client.

        Args:
            transport (httpx.AsyncBaseTransport | None): Transport override, e.g. an httpx.MockTransport.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        json: Any | None = None,
        params: dict | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send a request to the collaborator.

        Args:
            method: HTTP method.
            endpoint: Path appended to the base URL (leading slash optional).
            json: JSON-serialisable body.
            params: URL query parameters.
            additional_headers: Headers merged over the auth headers.
            raise_on_error: Raise on a status >= 300.

        Returns:
            The raw httpx.Response.

        Raises:
            RuntimeError: If boot() was not called.
            ClientRequestError: If the transport fails, or the status is >= 300 and raise_on_error is True.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before making requests.")

        endpoint = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""
        url = f"{self._get_base_url().rstrip('/')}{endpoint}"
        headers = {**self._get_auth_header(), **(additional_headers or {})}

        try:
            response = await self._client.request(method, url, headers=headers, params=params, json=json)
        except httpx.HTTPError as exc:
            self.logging.error("Request to %s failed: %s", url, exc)
            raise ClientRequestError(f"Request to {url} failed: {exc}", url=url) from exc

        if raise_on_error and response.status_code >= 300:
            self.logging.error("Request to %s failed with status %d: %s", url, response.status_code, response.text[:200])
            raise ClientRequestError(
                f"Request to {url} failed with status {response.status_code}",
                url=url,
                status_code=response.status_code,
            )
        return response

    async def do_json_request(
        self,
        method: str = "POST",
        endpoint: str = "",
        payload: Any | None = None,
        additional_headers: dict | None = None,
    ) -> Any:
        """Send a request that must succeed and decode its JSON answer.

        An empty body decodes to None.

        Raises:
            ClientRequestError: If the request fails or the body is not JSON.
        """
        response = await self.do_request(
            method=method,
            endpoint=endpoint,
            json=payload,
            additional_headers=additional_headers,
            raise_on_error=True,
        )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            url = str(response.request.url)
            self.logging.error("Response from %s is not valid JSON: %s", url, response.text[:200])
            raise ClientRequestError(f"Invalid JSON from {url}", url=url, status_code=response.status_code) from exc
