from shared.clients.extras.ExtrasClientInterface import ExtrasClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ExtrasClientTavern(ExtrasClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

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
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        headers = {"Bypass-Tunnel-Reminder": "bypass"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_modules(self) -> str:
        return "/api/modules"

    def _get_endpoint_summarize(self) -> str:
        return "/api/summarize"

    ################ PAYLOAD BUILDER ##################
    def get_summarize_payload(self, text: str) -> dict:
        return {"text": text, "params": {}}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_modules(self, response_data: dict) -> list[str]:
        return [str(module) for module in response_data.get("modules", [])]

    def extract_summary(self, response_data: dict) -> str:
        summary = response_data.get("summary")
        if summary is None:
            raise ValueError("Extras summarize response does not contain a summary. Response keys: %s" % list(response_data.keys()))
        return summary
