from shared.clients.ClientManager import ClientManager
from shared.clients.vector.VectorClientInterface import VectorClientInterface


class VectorClientManager(ClientManager):
    """Builds the vector API client. VECTOR_ENGINE defaults to "tavern"."""

    env_key = "VECTOR_ENGINE"
    package = "vector"
    class_prefix = "VectorClient"
    default_engine = "tavern"

    def get_client(self) -> VectorClientInterface:
        return self.client
