"""Classified failures of the vector source configuration."""

from enum import Enum


class VectorErrorCause(str, Enum):
    API_KEY_MISSING = "api_key_missing"
    API_URL_MISSING = "api_url_missing"
    API_MODEL_MISSING = "api_model_missing"
    EXTRAS_MODULE_MISSING = "extras_module_missing"


_ERROR_MESSAGES: dict[VectorErrorCause, str] = {
    VectorErrorCause.API_KEY_MISSING: 'API key missing. Save it in the "API Connections" panel.',
    VectorErrorCause.API_URL_MISSING: 'API URL missing. Save it in the "API Connections" panel.',
    VectorErrorCause.API_MODEL_MISSING: "Vectorization Source Model is required, but not set.",
    VectorErrorCause.EXTRAS_MODULE_MISSING: 'Extras API must provide an "embeddings" module.',
}

GENERIC_ERROR_MESSAGE = "Check server console for more details"


class VectorSourceError(Exception):
    """Raised before a request is sent when the selected source cannot work.

    Attributes:
        cause (VectorErrorCause): What is missing.
    """

    def __init__(self, message: str, cause: VectorErrorCause):
        super().__init__(message)
        self.cause = cause


def get_error_message(error: BaseException) -> str:
    """Map an exception to the message shown to the operator.

    Args:
        error (BaseException): Any failure raised while synchronizing or retrieving.

    Returns:
        str: The human-readable message for classified errors, a generic hint otherwise.
    """
    cause = getattr(error, "cause", None)
    if isinstance(cause, VectorErrorCause):
        return _ERROR_MESSAGES[cause]
    return GENERIC_ERROR_MESSAGE
