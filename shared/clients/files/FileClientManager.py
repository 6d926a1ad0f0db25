from shared.clients.ClientManager import ClientManager
from shared.clients.files.FileClientInterface import FileClientInterface


class FileClientManager(ClientManager):
    env_key = "FILE_ENGINE"
    package = "files"
    class_prefix = "FileClient"
    default_engine = "tavern"

    def get_client(self) -> FileClientInterface:
        return self.client
