from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Difficulty(str, Enum):
    """Difficulty levels offered on the setup form."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass
class ImageRecord:
    """In-memory representation of a game image and its target features.

    Attributes:
        id: Opaque identifier (e.g. ``gen-<hex>`` or ``static-1-<hex>``).
        url: Image URL or data URL shown to the player.
        alt_text: Description of the image (prompt or provider caption).
        features: Ordered feature phrases the player tries to guess.
        difficulty: Difficulty the image was generated for.
        thumbnail: Optional PNG thumbnail bytes (storage only).
        created_at: Unix timestamp (seconds) when the row was inserted.
    """

    id: str
    url: str
    alt_text: str
    features: List[str] = field(default_factory=list)
    difficulty: Difficulty = Difficulty.EASY
    thumbnail: Optional[bytes] = None
    created_at: Optional[int] = None
