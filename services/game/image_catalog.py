"""Built-in images used when image generation is unavailable."""

from __future__ import annotations

import random
from typing import List, Optional
from uuid import uuid4

from models.image_record import Difficulty, ImageRecord

FALLBACK_FEATURES = ["object", "color", "background"]

STATIC_IMAGES: List[ImageRecord] = [
    ImageRecord(
        id="1",
        url=(
            "https://images.unsplash.com/photo-1543466835-00a7907e9de1"
            "?q=80&w=1974&auto=format&fit=crop"
        ),
        alt_text="A happy dog with a red collar",
        features=["dog", "brown and white fur", "red collar", "tongue out", "grass background"],
        difficulty=Difficulty.EASY,
    ),
    ImageRecord(
        id="2",
        url=(
            "https://images.unsplash.com/photo-1503614472-8c93d56e92ce"
            "?q=80&w=2011&auto=format&fit=crop"
        ),
        alt_text="Mountain landscape with a lake",
        features=["mountains", "snow-capped peaks", "clear blue lake", "reflection in water", "pine trees"],
        difficulty=Difficulty.MEDIUM,
    ),
    ImageRecord(
        id="3",
        url=(
            "https://images.unsplash.com/photo-1472851294608-062f824d29cc"
            "?q=80&w=2070&auto=format&fit=crop"
        ),
        alt_text="Busy marketplace scene",
        features=["crowded street", "market stalls", "various goods displayed", "people shopping", "colorful fabrics"],
        difficulty=Difficulty.HARD,
    ),
]


def get_image_by_difficulty(
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
    catalog: Optional[List[ImageRecord]] = None,
) -> Optional[ImageRecord]:
    """Return a fresh copy of a catalog image for ``difficulty``.

    Each call gets a new id so a snapshot from an earlier game on the same
    picture is never mistaken for the current one. Falls back to the first
    catalog entry when no image has the requested difficulty.
    """
    images = STATIC_IMAGES if catalog is None else catalog
    if not images:
        return None
    suitable = [img for img in images if img.difficulty == difficulty] or images[:1]
    chosen = (rng or random).choice(suitable)
    return ImageRecord(
        id=f"static-{chosen.id}-{uuid4().hex[:12]}",
        url=chosen.url,
        alt_text=chosen.alt_text,
        features=list(chosen.features) or list(FALLBACK_FEATURES),
        difficulty=chosen.difficulty,
    )
