from urllib.parse import urlparse

from shared.clients.files.FileClientInterface import FileClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class FileClientTavern(FileClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")

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
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_attachment(self, url: str) -> str:
        # attachments are served as static files; keep only the path of absolute URLs
        return urlparse(url).path or url
