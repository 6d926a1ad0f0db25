from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class LLMClientInterface(ClientInterface):
    """Primary text generation backend, used for "main" summaries.

    Summaries are single-shot generations: an optional system instruction and
    one user text, no chat history.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.chat_model = self.get_config_val("CHAT_MODEL", default=None, val_type="string")
        self.temperature = self.get_config_val("TEMPERATURE", default=0.3, val_type="number")
        # 0 leaves the reply length to the backend
        self.max_tokens = int(self.get_config_val("MAX_TOKENS", default=0, val_type="number"))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_generate(self) -> str:
        pass

    ################ PAYLOAD BUILDER ##################
    def build_messages(self, prompt: str, system_prompt: str = "") -> list[dict]:
        messages = [{"role": "system", "content": system_prompt}] if system_prompt else []
        messages.append({"role": "user", "content": prompt})
        return messages

    @abstractmethod
    def get_generate_payload(self, messages: list[dict]) -> dict:
        """Build the backend request body for a non-streaming generation.

        Args:
            messages (list[dict]): Role/content messages from build_messages().
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_reply(self, response_data: dict) -> str:
        """
        Raises:
            ValueError: If the response carries no generated text.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_generate_raw(self, prompt: str, system_prompt: str = "") -> str:
        """Generate a reply to one prompt.

        Args:
            prompt (str): The text to work on, e.g. a chat message to summarize.
            system_prompt (str): Instruction sent ahead of the prompt.

        Returns:
            str: The generated text, stripped.

        Raises:
            ClientRequestError: If the request fails.
            ValueError: If the backend answered without text.
        """
        payload = self.get_generate_payload(self.build_messages(prompt, system_prompt))
        response_data = await self.do_json_request(method="POST", endpoint=self._get_endpoint_generate(), payload=payload)
        reply = self.extract_reply(response_data or {}).strip()
        self.logging.debug("Generated %d chars with %s", len(reply), self.chat_model)
        return reply
