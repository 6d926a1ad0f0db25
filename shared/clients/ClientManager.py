from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """Instantiates the client engine named by <CLIENT_TYPE>_ENGINE.

    Engines live in shared/clients/<package>/<engine>/<Prefix><Engine>.py,
    e.g. shared/clients/vector/tavern/VectorClientTavern.py. Subclasses name
    the package and class prefix. With default_engine None the client is
    optional and get_client() returns None while no engine is configured.
    """

    env_key: str = ""
    package: str = ""
    class_prefix: str = ""
    default_engine: str | None = None

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str | None:
        engine = self.helper_config.get_string_val(self.env_key, default=self.default_engine or "")
        if not engine.strip():
            return None
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> ClientInterface | None:
        """
        Raises:
            ValueError: If the engine is unsupported or cannot be imported.
        """
        engine = self._get_engine_from_env()
        if engine is None:
            self.logging.info("%s is not set, %s client disabled.", self.env_key, self.package)
            return None

        class_name = f"{self.class_prefix}{engine}"
        try:
            module = __import__(f"shared.clients.{self.package}.{engine.lower()}.{class_name}", fromlist=[class_name])
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.package} engine '{engine}' ({self.env_key}). Error: {e}")

        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s for engine %s", class_name, engine)
        return client

    def get_client(self) -> ClientInterface | None:
        return self.client
