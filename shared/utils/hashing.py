"""Content hashing for vector items.

Items are identified by a 53-bit cyrb53 digest of their text, computed over
UTF-16 code units so the values match the ones the browser client stores in
the same collections.
"""

from functools import lru_cache

_MASK_32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiplication."""
    return (a * b) & _MASK_32


def cyrb53(text: str, seed: int = 0) -> int:
    """Return the 53-bit cyrb53 hash of a string.

    Args:
        text (str): The string to hash.
        seed (int): Optional seed for an alternate hash stream.

    Returns:
        int: A non-negative integer below 2**53.
    """
    h1 = (0xDEADBEEF ^ seed) & _MASK_32
    h2 = (0x41C6CE57 ^ seed) & _MASK_32
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        ch = data[i] | (data[i + 1] << 8)
        h1 = _imul(h1 ^ ch, 2654435761)
        h2 = _imul(h2 ^ ch, 1597334677)
    h1 = _imul(h1 ^ (h1 >> 16), 2246822507) ^ _imul(h2 ^ (h2 >> 13), 3266489909)
    h2 = _imul(h2 ^ (h2 >> 16), 2246822507) ^ _imul(h1 ^ (h1 >> 13), 3266489909)
    return 4294967296 * (2097151 & h2) + h1


# Memoized for the process lifetime without eviction. The key space is the
# text of the chats, files and entries handled while the process runs.
@lru_cache(maxsize=None)
def get_string_hash(text: str) -> int:
    """Cached content hash of a string."""
    return cyrb53(text)


def get_file_collection_id(file_url: str) -> str:
    """Collection key of a file attachment."""
    return f"file_{get_string_hash(file_url)}"


def get_world_collection_id(world: str) -> str:
    """Collection key of a World Info book."""
    return f"world_{get_string_hash(world)}"
