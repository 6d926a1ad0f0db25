from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ExtrasClientInterface(ClientInterface):
    """Auxiliary model server offering optional modules (embeddings, summarize, ...)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "extras"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_modules(self) -> str:
        """Returns the endpoint path listing the enabled modules (e.g. "/api/modules")."""
        pass

    @abstractmethod
    def _get_endpoint_summarize(self) -> str:
        """Returns the endpoint path for summarization requests (e.g. "/api/summarize")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_summarize_payload(self, text: str) -> dict:
        """Build the request body for a summarization request."""
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_modules(self, response_data: dict) -> list[str]:
        """Extract the module names from a modules response."""
        pass

    @abstractmethod
    def extract_summary(self, response_data: dict) -> str:
        """Extract the summary text from a summarization response.

        Raises:
            ValueError: If the response carries no summary.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_modules(self) -> list[str]:
        """Fetch the names of the modules the server has loaded.

        Returns:
            list[str]: Module names, e.g. ["embeddings", "summarize"].
        """
        return self.extract_modules(await self.do_json_request(method="GET", endpoint=self._get_endpoint_modules()) or {})

    async def do_summarize(self, text: str) -> str:
        """Summarize a text with the summarize module.

        Raises:
            ClientRequestError: If the request fails.
            ValueError: If the response carries no summary.
        """
        response_data = await self.do_json_request(
            method="POST",
            endpoint=self._get_endpoint_summarize(),
            payload=self.get_summarize_payload(text),
        )
        return self.extract_summary(response_data or {})
