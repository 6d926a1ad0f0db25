from shared.models.memory import PromptSlot
from shared.models.settings import PromptPosition, PromptRole

# chat memory and Data Bank slots
EXTENSION_PROMPT_TAG = "3_vectors"
EXTENSION_PROMPT_TAG_DB = "4_vectors_data_bank"


class PromptSlotRegistry:
    """Named extension prompts that the prompt builder splices into the outgoing prompt."""

    def __init__(self) -> None:
        self._slots: dict[str, PromptSlot] = {}

    def set_extension_prompt(
        self,
        tag: str,
        text: str,
        position: PromptPosition,
        depth: int,
        include_wi: bool = False,
        role: PromptRole = PromptRole.SYSTEM,
    ) -> None:
        """Set (or clear, with empty text) the prompt stored under a tag."""
        self._slots[tag] = PromptSlot(
            tag=tag,
            text=text,
            position=position,
            depth=depth,
            include_wi=include_wi,
            role=role,
        )

    def get_slot(self, tag: str) -> PromptSlot | None:
        return self._slots.get(tag)

    def get_text(self, tag: str) -> str:
        slot = self._slots.get(tag)
        return slot.text if slot else ""

    def snapshot(self) -> dict[str, PromptSlot]:
        return dict(self._slots)

    def clear(self) -> None:
        self._slots.clear()
