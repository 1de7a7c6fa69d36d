"""Strict serialized form of a game session.

Snapshots cross a trust boundary (they are stored and read back between
requests), so decoding validates types and the session invariants instead of
coercing whatever is found.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.image_record import Difficulty, ImageRecord
from models.session_models import ChatMessage, ChatRole, SessionConfig, SessionState

SNAPSHOT_VERSION = 1


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ImageSnapshot(_Strict):
    id: str = Field(min_length=1)
    url: str
    alt_text: str = ""
    features: List[str] = Field(min_length=1)
    difficulty: Difficulty = Difficulty.EASY


class ChatMessageSnapshot(_Strict):
    role: ChatRole
    text: str


class ConfigSnapshot(_Strict):
    max_attempts: int = Field(ge=1)
    win_threshold: int = Field(ge=1)
    topic: str = ""
    style: str = "any"
    age: Optional[int] = Field(default=None, ge=1)
    difficulty: Difficulty = Difficulty.EASY


class SessionSnapshot(_Strict):
    version: int = SNAPSHOT_VERSION
    image: Optional[ImageSnapshot] = None
    config: ConfigSnapshot
    chat_history: List[ChatMessageSnapshot] = Field(default_factory=list)
    found_features: List[str] = Field(default_factory=list)
    attempts_remaining: int = Field(ge=0)
    started: bool = False
    finished: bool = False
    threshold_met: bool = False
    all_found: bool = False
    last_sequence: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_invariants(self) -> "SessionSnapshot":
        if self.version != SNAPSHOT_VERSION:
            raise ValueError(f"unsupported snapshot version {self.version}")
        if self.image is None:
            if self.started or self.found_features:
                raise ValueError("a started session needs an image")
            return self

        normalized = {f.strip().lower() for f in self.image.features}
        found = set(self.found_features)
        if not found <= normalized:
            raise ValueError("found_features must be a subset of the image features")
        if self.all_found != (len(found) == len(normalized)):
            raise ValueError("all_found does not match found_features")
        if self.threshold_met and len(found) < self.config.win_threshold:
            raise ValueError("threshold_met set below the win threshold")
        if self.finished != (self.all_found or self.attempts_remaining == 0):
            raise ValueError("finished does not match the terminal conditions")
        return self

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionSnapshot":
        image = None
        if state.image is not None:
            image = ImageSnapshot(
                id=state.image.id,
                url=state.image.url,
                alt_text=state.image.alt_text,
                features=list(state.image.features),
                difficulty=state.image.difficulty,
            )
        config = state.config
        return cls(
            image=image,
            config=ConfigSnapshot(
                max_attempts=config.max_attempts,
                win_threshold=config.win_threshold,
                topic=config.topic,
                style=config.style,
                age=config.age,
                difficulty=config.difficulty,
            ),
            chat_history=[ChatMessageSnapshot(role=m.role, text=m.text) for m in state.chat_history],
            found_features=sorted(state.found_features),
            attempts_remaining=state.attempts_remaining,
            started=state.started,
            finished=state.finished,
            threshold_met=state.threshold_met,
            all_found=state.all_found,
            last_sequence=state.last_sequence,
        )

    def to_state(self) -> SessionState:
        image = None
        if self.image is not None:
            image = ImageRecord(
                id=self.image.id,
                url=self.image.url,
                alt_text=self.image.alt_text,
                features=list(self.image.features),
                difficulty=self.image.difficulty,
            )
        return SessionState(
            image=image,
            config=SessionConfig(**self.config.model_dump()),
            chat_history=[ChatMessage(role=m.role, text=m.text) for m in self.chat_history],
            found_features=set(self.found_features),
            attempts_remaining=self.attempts_remaining,
            started=self.started,
            finished=self.finished,
            threshold_met=self.threshold_met,
            all_found=self.all_found,
            last_sequence=self.last_sequence,
        )
