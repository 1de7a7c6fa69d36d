"""Match free-text guesses against an image's target features.

Matching is deliberately permissive: a feature counts as found when the
normalized guess equals it, contains it, or is contained by it. Short guesses
can therefore hit longer features (``"do"`` finds ``"dog"``). Help requests are
detected on whole words so ``"helmet"`` is not a request for help.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List

HELP_KEYWORDS = ("help", "hint", "hints", "clue", "clues")

_HELP_PATTERN = re.compile(r"\b(?:" + "|".join(HELP_KEYWORDS) + r")\b")


@dataclass(frozen=True)
class MatchResult:
    """Features newly identified by one guess.

    Attributes:
        matched: Newly found features in image order, original casing.
        is_help_request: True when the guess asked for help; no matching ran.
    """

    matched: List[str] = field(default_factory=list)
    is_help_request: bool = False

    @property
    def normalized(self) -> List[str]:
        return [normalize_feature(f) for f in self.matched]


def normalize_feature(text: str) -> str:
    """Trim and lower-case a feature or guess."""
    return (text or "").strip().lower()


def is_help_request(guess: str) -> bool:
    """Return True when the guess contains a help keyword."""
    return bool(_HELP_PATTERN.search(normalize_feature(guess)))


def dedupe_features(features: Iterable[str]) -> List[str]:
    """Drop blank and duplicate (by normalized form) features, keeping order."""
    seen = set()
    result: List[str] = []
    for feature in features:
        cleaned = (feature or "").strip()
        key = cleaned.lower()
        if not key or key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


def _hits(guess: str, feature: str) -> bool:
    return guess == feature or feature in guess or guess in feature


def match(guess: str, features: Iterable[str], already_found: AbstractSet[str]) -> MatchResult:
    """Return the features identified by ``guess`` that were not found before.

    Args:
        guess: Raw player input.
        features: The image's features in display order.
        already_found: Normalized features found earlier in the session.
    """
    normalized_guess = normalize_feature(guess)
    if not normalized_guess:
        return MatchResult()
    if is_help_request(normalized_guess):
        return MatchResult(is_help_request=True)

    matched: List[str] = []
    seen = set(already_found)
    for feature in features:
        normalized = normalize_feature(feature)
        if not normalized or normalized in seen:
            continue
        if _hits(normalized_guess, normalized):
            matched.append(feature)
            seen.add(normalized)
    return MatchResult(matched=matched)
