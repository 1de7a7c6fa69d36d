"""Session domain models for the guessing game."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set

from models.image_record import Difficulty, ImageRecord

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_WIN_THRESHOLD = 4


class ChatRole(str, Enum):
	PLAYER = "player"
	ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
	"""One entry of the in-game chat panel."""

	role: ChatRole
	text: str


@dataclass(frozen=True)
class SessionConfig:
	"""Setup parameters chosen by the player; fixed for one session."""

	max_attempts: int = DEFAULT_MAX_ATTEMPTS
	win_threshold: int = DEFAULT_WIN_THRESHOLD
	topic: str = ""
	style: str = "any"
	age: Optional[int] = None
	difficulty: Difficulty = Difficulty.EASY


@dataclass
class SessionState:
	"""Game state for a single play-through.

	``found_features`` holds normalized feature phrases. ``last_sequence`` is
	the highest guess submission number accepted so far (0 when none).
	"""

	image: Optional[ImageRecord] = None
	config: SessionConfig = field(default_factory=SessionConfig)
	chat_history: List[ChatMessage] = field(default_factory=list)
	found_features: Set[str] = field(default_factory=set)
	attempts_remaining: int = DEFAULT_MAX_ATTEMPTS
	started: bool = False
	finished: bool = False
	threshold_met: bool = False
	all_found: bool = False
	last_sequence: int = 0

	@property
	def is_active(self) -> bool:
		return self.started and not self.finished

	@property
	def is_game_over(self) -> bool:
		"""Finished without finding every feature."""
		return self.finished and not self.all_found

	@property
	def feature_count(self) -> int:
		return len(self.image.features) if self.image else 0

	@property
	def remaining_features(self) -> List[str]:
		"""Features not found yet, in image order with original casing."""
		if self.image is None:
			return []
		return [f for f in self.image.features if f.strip().lower() not in self.found_features]

	@property
	def found_in_display_order(self) -> List[str]:
		if self.image is None:
			return []
		return [f for f in self.image.features if f.strip().lower() in self.found_features]
