from pydantic import BaseModel


class QueryResult(BaseModel):
    """Ranked result of a similarity query against one collection.

    Attributes:
        hashes:   Hashes of the matching items, most similar first.
        metadata: Stored metadata per match ({"text", "index", "hash", ...}), same order.
    """

    hashes: list[int] = []
    metadata: list[dict] = []

    def get_texts_by_index(self) -> list[str]:
        """Return the unique non-empty texts ordered by their source index."""
        entries = [entry for entry in self.metadata if entry.get("text")]
        entries.sort(key=lambda entry: entry.get("index", 0))
        return list(dict.fromkeys(entry["text"] for entry in entries))
