"""Player-facing chat texts produced by the game itself."""

from __future__ import annotations

from typing import List, Sequence

HINT_ERROR_MESSAGE = "Sorry, I encountered an error processing that hint. Please try again."
SAFETY_BLOCKED_MESSAGE = (
    "I can't provide a hint for that due to safety settings. Please try describing a different aspect."
)
EMPTY_HINT_MESSAGE = "I'm not sure how to respond to that. Try describing something else!"


def _join(names: Sequence[str]) -> str:
    quoted = [f"'{name}'" for name in names]
    if len(quoted) <= 1:
        return "".join(quoted)
    return ", ".join(quoted[:-1]) + " and " + quoted[-1]


def acknowledgement(newly_found: Sequence[str], found_count: int, total: int) -> str:
    """Confirm newly found features with the running count."""
    return f"Yes, {_join(newly_found)} {'is' if len(newly_found) == 1 else 'are'} correct! ({found_count}/{total} features found)"


def all_found_message(total: int) -> str:
    return f"Amazing, you found all {total} features!"


def game_over_message(remaining: List[str]) -> str:
    if not remaining:
        return "Out of attempts!"
    return f"Out of attempts! The features you missed were: {', '.join(remaining)}."
