from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class FileClientInterface(ClientInterface):
    """Reads the text of file attachments stored by the chat server."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "file"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_attachment(self, url: str) -> str:
        """
        Returns the endpoint path for an attachment URL.

        Args:
            url (str): The attachment URL as stored in the chat (e.g. "/user/files/notes.txt").

        Returns:
            str: The path relative to the base URL.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_attachment(self, url: str) -> str:
        """Download the text of a file attachment.

        Args:
            url (str): The attachment URL.

        Returns:
            str: The file text.

        Raises:
            ClientRequestError: If the request fails or returns a non-2xx status.
        """
        response = await self.do_request(method="GET", endpoint=self._get_endpoint_attachment(url), raise_on_error=True)
        self.logging.debug("Fetched attachment %s (%d chars)", url, len(response.text))
        return response.text
