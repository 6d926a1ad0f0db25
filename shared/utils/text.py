"""Text helpers for prompt assembly."""

import re

_NEWLINES_RE = re.compile(r"\n+")
_SLOT_RE = re.compile(r"\{\{\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*\}\}")


def collapse_newlines(text: str) -> str:
    """Replace every run of newlines with a single newline."""
    return _NEWLINES_RE.sub("\n", text)


def render_template(template: str, slots: dict[str, str]) -> str:
    """Fill ``{{name}}`` placeholders from a slot map in a single pass.

    Slot names match case-insensitively. Placeholders without a slot are left
    untouched, and text coming from a slot is never expanded again, so
    content that itself contains ``{{text}}`` is inserted verbatim.

    Args:
        template (str): Template such as "Past events:\\n{{text}}".
        slots (dict[str, str]): Slot name -> replacement text.

    Returns:
        str: The rendered text.
    """
    lookup = {name.lower(): value for name, value in slots.items()}

    def _replace(match: re.Match) -> str:
        name = match.group(1).lower()
        return lookup[name] if name in lookup else match.group(0)

    return _SLOT_RE.sub(_replace, template)
