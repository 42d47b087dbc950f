"""Shared Pydantic types and validators for reuse across models.

Centralises label normalisation, traversal bounds, the snake_case check for
relationship types, and Literal enums so every model speaks the same language.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BeforeValidator

# ---------------------------------------------------------------------------
# Label normalisation
# ---------------------------------------------------------------------------


def normalize_labels(v: Any) -> list[str]:
    """Accept ``str | list | None`` and return a clean ``list[str]``.

    * ``"Project, Active"`` → ``["Project", "Active"]``
    * ``["Task", None, " Done "]`` → ``["Task", "Done"]``
    * ``None`` → ``[]``

    Order is preserved; duplicates are dropped after their first occurrence.
    """
    if v is None:
        return []
    if isinstance(v, str):
        items = [t.strip() for t in v.split(",")]
    elif isinstance(v, (list, tuple)):
        items = [str(item).strip() for item in v if item is not None]
    else:
        return []
    seen: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return seen


Labels = Annotated[list[str], BeforeValidator(normalize_labels)]
"""Flexible label input: accepts str, list, or None and always outputs list[str]."""


def normalize_observations(v: Any) -> list[str]:
    """Accept a single string or a list; ``None`` becomes an empty list."""
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    return list(v)


Observations = Annotated[list[str], BeforeValidator(normalize_observations)]


# ---------------------------------------------------------------------------
# Relationship type format
# ---------------------------------------------------------------------------

SNAKE_CASE_CHARS = frozenset("abcdefghijklmnopqrstuvwxyz0123456789_")


def is_snake_case(name: str) -> bool:
    """True when every character is an ascii lowercase letter, digit or underscore.

    The empty string passes; whether it is an allowed type is decided elsewhere.
    """
    return all(c in SNAKE_CASE_CHARS for c in name)


# ---------------------------------------------------------------------------
# Traversal bounds
# ---------------------------------------------------------------------------

MIN_DEPTH = 1
MAX_DEPTH = 5


# ---------------------------------------------------------------------------
# Literal enums
# ---------------------------------------------------------------------------

TaskLifecycle = Literal["Active", "Blocked", "Done", "Cancelled", "Archived"]
"""Lifecycle labels a task can carry alongside ``Task``."""
