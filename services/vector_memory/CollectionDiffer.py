from pydantic import BaseModel

from shared.clients.vector.models.VectorItem import VectorItem


class SyncDelta(BaseModel):
    """What has to change remotely for a collection to match its local source.

    Attributes:
        to_insert: Local items whose hash the collection does not hold, in local order.
        to_delete: Remote hashes with no local item, in remote order.
    """

    to_insert: list[VectorItem] = []
    to_delete: list[int] = []

    def is_empty(self) -> bool:
        return not self.to_insert and not self.to_delete


def diff_collection(local_items: list[VectorItem], remote_hashes: list[int]) -> SyncDelta:
    """Compare local items with the hashes listed for a collection.

    Args:
        local_items (list[VectorItem]): The local source, already hashed.
        remote_hashes (list[int]): The hashes the vector store holds.

    Returns:
        SyncDelta: Items to insert and hashes to delete. There is no update in
            place; changed text has a new hash and shows up in both lists.
    """
    remote = set(remote_hashes)
    local = {item.hash for item in local_items}
    return SyncDelta(
        to_insert=[item for item in local_items if item.hash not in remote],
        to_delete=[value for value in remote_hashes if value not in local],
    )
