"""Environment configuration for the vector memory bridge."""

import logging
import os
from typing import Any, Callable


class HelperConfig:
    """Reads typed settings from environment variables and carries the application logger.

    Keys are case-insensitive (looked up upper-case). An empty or whitespace-only
    variable counts as unset. A default of None makes a key mandatory.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _resolve(self, key: str, default: Any, parse: Callable[[str], Any]) -> Any:
        name = key.upper()
        raw = os.getenv(name)
        if raw is None or not raw.strip():
            if default is None:
                raise ValueError(f"Environment variable '{name}' is not set.")
            return default
        try:
            return parse(raw.strip())
        except ValueError as e:
            raise ValueError(f"Environment variable '{name}' is invalid: {e}")

    def get_string_val(self, key: str, default: str | None = None) -> str:
        return self._resolve(key, default, str)

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int, or a float when the value contains a dot."""
        return self._resolve(key, default, lambda raw: float(raw) if "." in raw else int(raw))

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a flag. "true", "1" and "yes" (any case) are True, everything else False."""
        return self._resolve(key, default, lambda raw: raw.lower() in ("true", "1", "yes"))

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a bracketed list such as "[http://a,http://b]".

        Args:
            key (str): Environment variable name.
            default (list | None): Value used when the variable is unset.
            separator (str): Element delimiter.
            element_type (type): Type each element is cast to.

        Returns:
            list: The elements, empty for "[]".

        Raises:
            ValueError: If the variable is unset without default, not bracketed,
                or an element cannot be cast.
        """

        def parse(raw: str) -> list:
            if not raw.startswith("[") or not raw.endswith("]"):
                raise ValueError(f"expected '[elem1{separator}elem2{separator}...]', got '{raw}'")
            return [element_type(elem.strip()) for elem in raw[1:-1].split(separator) if elem.strip()]

        return self._resolve(key, default, parse)

    def get_logger(self) -> logging.Logger:
        return self._logger
