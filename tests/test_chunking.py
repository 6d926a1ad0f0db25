"""Tests for the recursive chunker."""

import re

import pytest

from shared.utils.chunking import split_recursive


def _strip_whitespace(text: str) -> str:
    return re.sub(r"\s", "", text)


SAMPLE = (
    "Chapter one.\n\nThe road was long and the night was cold. "
    "Nobody spoke.\nA fox crossed the path.\n\n"
    "Chapter two.\n\nAntidisestablishmentarianism is a long word indeed."
)


@pytest.mark.parametrize("max_size", [-1, 0])
def test_non_positive_size_returns_text_whole(max_size: int) -> None:
    assert split_recursive(SAMPLE, max_size) == [SAMPLE]


@pytest.mark.parametrize("max_size", [1, 5, 12, 40, 500])
def test_chunks_are_bounded_and_reconstruct_content(max_size: int) -> None:
    chunks = split_recursive(SAMPLE, max_size)
    assert chunks
    assert all(0 < len(chunk) <= max_size for chunk in chunks)
    assert _strip_whitespace("".join(chunks)) == _strip_whitespace(SAMPLE)


def test_prefers_paragraph_boundaries() -> None:
    text = "alpha beta\n\ngamma delta"
    assert split_recursive(text, 12) == ["alpha beta", "gamma delta"]


def test_merges_short_pieces_back_together() -> None:
    assert split_recursive("a b c d e f", 5) == ["a b c", "d e f"]


def test_hard_cuts_words_longer_than_the_limit() -> None:
    assert split_recursive("abcdefghij", 4) == ["abcd", "efgh", "ij"]


def test_short_text_is_one_chunk() -> None:
    assert split_recursive("short", 100) == ["short"]


def test_empty_text_yields_no_chunks() -> None:
    assert split_recursive("", 10) == []


def test_large_input_terminates() -> None:
    text = "word " * 20_000
    chunks = split_recursive(text, 100)
    assert all(len(chunk) <= 100 for chunk in chunks)
    assert _strip_whitespace("".join(chunks)) == _strip_whitespace(text)
