"""A unit of text stored in a vector collection."""

from pydantic import BaseModel


class VectorItem(BaseModel):
    """A hashed, positioned piece of text eligible for indexing.

    Chunks of the same message share the message's hash and index, so
    deleting a hash removes every chunk of it.

    Attributes:
        hash:  Content hash of the source text (see shared.utils.hashing).
        text:  Text sent to the embedding backend.
        index: Position in the source sequence (message index, chunk index or entry uid).
    """

    hash: int
    text: str
    index: int
