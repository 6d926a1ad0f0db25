"""Text chunking for vector items."""

from __future__ import annotations

# natural boundaries first, hard character cuts last
DELIMITERS: tuple[str, ...] = ("\n\n", "\n", " ", "")


def split_recursive(text: str, max_size: int) -> list[str]:
    """Split text into ordered chunks of at most ``max_size`` characters.

    Paragraph breaks are preferred over line breaks, line breaks over spaces,
    and spaces over cutting inside a word. Neighbouring pieces are merged back
    together with their delimiter while the result still fits, so chunks stay
    close to ``max_size``. Only delimiter whitespace is lost at chunk borders.

    Args:
        text (str): The text to split.
        max_size (int): Maximum chunk length. ``<= 0`` disables splitting.

    Returns:
        list[str]: Non-empty chunks in source order. ``[text]`` when splitting
            is disabled, ``[]`` for empty text otherwise.
    """
    if max_size <= 0:
        return [text]
    if not text:
        return []
    return _split_level(text, max_size, 0)


def _split_level(text: str, max_size: int, level: int) -> list[str]:
    delimiter = DELIMITERS[level]
    if not delimiter:
        return [text[start:start + max_size] for start in range(0, len(text), max_size)]

    pieces: list[str] = []
    for part in text.split(delimiter):
        if not part:
            continue
        if len(part) <= max_size:
            pieces.append(part)
        else:
            pieces.extend(_split_level(part, max_size, level + 1))
    return _merge_pieces(pieces, delimiter, max_size)


def _merge_pieces(pieces: list[str], delimiter: str, max_size: int) -> list[str]:
    merged: list[str] = []
    current: str | None = None
    for piece in pieces:
        if current is None:
            current = piece
        elif len(current) + len(delimiter) + len(piece) <= max_size:
            current = f"{current}{delimiter}{piece}"
        else:
            merged.append(current)
            current = piece
    if current is not None:
        merged.append(current)
    return merged
