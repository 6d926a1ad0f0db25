class ChatContext:
    """The active chat and whether a generation is running.

    Both values are owned by the front end and pushed in through the setters;
    the services only read them.
    """

    def __init__(self, chat_id: str | None = None, generating: bool = False) -> None:
        self._chat_id = chat_id or None
        self._generating = generating

    def get_chat_id(self) -> str | None:
        return self._chat_id

    def is_generating(self) -> bool:
        return self._generating

    def set_chat_id(self, chat_id: str | None) -> None:
        self._chat_id = chat_id or None

    def set_generating(self, generating: bool) -> None:
        self._generating = generating
