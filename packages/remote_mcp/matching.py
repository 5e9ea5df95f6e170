"""Literal substring matching used by the edit tools.

Matching never goes through a pattern engine, so characters such as
``.``, ``*`` or ``(`` in the searched text have no special meaning.
"""


def occurrence_count(content: str, old: str) -> int:
    """Count non-overlapping occurrences of ``old``, scanning left to right."""
    if not old:
        raise ValueError("Cannot count occurrences of an empty string")
    return content.count(old)


def replace(content: str, old: str, new: str, replace_all: bool = False) -> str:
    """Replace the first occurrence of ``old``, or every one if ``replace_all``."""
    if not old:
        raise ValueError("Cannot replace an empty string")
    if replace_all:
        return content.replace(old, new)
    return content.replace(old, new, 1)
