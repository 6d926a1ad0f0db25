class ClientRequestError(Exception):
    """Raised when a backend answers with a non-2xx status or cannot be reached.

    Attributes:
        url (str): The full request URL.
        status_code (int | None): The HTTP status, or None for transport failures.
    """

    def __init__(self, message: str, url: str, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
