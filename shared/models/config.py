from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Describes one environment setting a client reads on construction.

    Attributes:
        env_key (str): The raw key without the "<CLIENT_TYPE>_<ENGINE>_" prefix, e.g. "BASE_URL".
        val_type (str): How the value is parsed. One of "string", "number", "bool" and "list".
        default (str | int | float | bool | list | None): Value used when the variable is unset.
            None marks the setting as mandatory; construction fails if it is missing.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
