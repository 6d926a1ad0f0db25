from shared.clients.ClientManager import ClientManager
from shared.clients.extras.ExtrasClientInterface import ExtrasClientInterface


class ExtrasClientManager(ClientManager):
    """Builds the optional Extras API client (EXTRAS_ENGINE)."""

    env_key = "EXTRAS_ENGINE"
    package = "extras"
    class_prefix = "ExtrasClient"

    def get_client(self) -> ExtrasClientInterface | None:
        return self.client
