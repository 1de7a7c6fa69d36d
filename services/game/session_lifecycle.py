"""Session lifecycle: start, resume, reset and persistence of game sessions.

Rules enforced here:
- A new game replaces any previous snapshot under the same key.
- A snapshot is only resumed for the image the client is currently showing,
  and never once the game has finished.
- Snapshots are written while a game is active and deleted as soon as it
  finishes or is reset, so an ended game cannot be resurrected.
- A scored guess is stored before its hint is requested; the hint only adds
  the assistant reply.
"""

from __future__ import annotations

import asyncio
import json
import logging
import weakref
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from models.errors import ConfigurationError, MalformedPayloadError, SessionNotFoundError
from models.image_record import ImageRecord
from models.session_models import SessionConfig, SessionState
from models.snapshot_schema import SessionSnapshot
from services.game import messages
from services.game.feature_matcher import dedupe_features
from services.game.snapshot_store import SnapshotStore
from services.game.state_machine import (
    GuessOutcome,
    HintProvider,
    append_reply,
    apply_outcome,
    evaluate_guess,
    guess_reply,
    is_duplicate,
)

LOGGER = logging.getLogger(__name__)

RawSnapshot = Union[str, bytes, Mapping[str, Any]]


@dataclass(frozen=True)
class GuessTurn:
    """Result of one submitted guess.

    ``outcome`` is None when the guess was not applied (duplicate submission
    or nothing to score); ``state`` is then the stored state unchanged.
    """

    previous: SessionState
    state: SessionState
    outcome: Optional[GuessOutcome] = None


def encode_snapshot(state: SessionState) -> str:
    """Serialize a session state to JSON."""
    return SessionSnapshot.from_state(state).model_dump_json()


def decode_snapshot(raw: RawSnapshot) -> SessionState:
    """Parse and validate a serialized snapshot.

    Raises:
        MalformedPayloadError: If the payload is not valid JSON or violates
            the snapshot schema/invariants.
    """
    try:
        if isinstance(raw, (str, bytes)):
            snapshot = SessionSnapshot.model_validate_json(raw)
        else:
            snapshot = SessionSnapshot.model_validate(dict(raw))
    except (ValidationError, json.JSONDecodeError, TypeError) as exc:
        raise MalformedPayloadError(f"Invalid session snapshot: {exc}") from exc
    return snapshot.to_state()


def start_new_session(config: SessionConfig, image: ImageRecord) -> SessionState:
    """Build a fresh, started session for ``image``.

    Raises:
        ConfigurationError: If the image has no features, attempts are not
            positive, or the win threshold is outside 1..len(features).
    """
    features = dedupe_features(image.features)
    if not features:
        raise ConfigurationError("The image has no features to guess; generate a new image.")
    if config.max_attempts < 1:
        raise ConfigurationError("Attempts must be a positive number.")
    if config.win_threshold < 1:
        raise ConfigurationError("Win threshold must be a positive number.")
    if config.win_threshold > len(features):
        raise ConfigurationError(
            f"Win threshold ({config.win_threshold}) cannot exceed the number of features ({len(features)})."
        )

    if features != image.features:
        image = ImageRecord(
            id=image.id,
            url=image.url,
            alt_text=image.alt_text,
            features=features,
            difficulty=image.difficulty,
            thumbnail=image.thumbnail,
            created_at=image.created_at,
        )

    return SessionState(
        image=image,
        config=config,
        attempts_remaining=config.max_attempts,
        started=True,
    )


def resume_session(snapshot: RawSnapshot, current_image_id: Optional[str]) -> Optional[SessionState]:
    """Return the snapshot's state if it belongs to the current, unfinished game."""
    try:
        state = decode_snapshot(snapshot)
    except MalformedPayloadError as exc:
        LOGGER.warning("Discarding malformed snapshot: %s", exc)
        return None

    if state.image is None or current_image_id is None or state.image.id != current_image_id:
        return None
    if state.finished or not state.started:
        return None
    return state


def reset_session() -> SessionState:
    """Return the canonical empty, unstarted state."""
    return SessionState()


class SessionLifecycleManager:
    """Start, restore, update and reset sessions on top of a snapshot store."""

    def __init__(self, store: SnapshotStore) -> None:
        if store is None:
            raise ValueError("A snapshot store is required.")
        self.store = store
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    async def begin(self, session_key: str, config: SessionConfig, image: ImageRecord) -> SessionState:
        """Start a new game, replacing any snapshot stored under the key."""
        state = start_new_session(config, image)
        await self.record(session_key, state)
        LOGGER.info(
            "Started session %s with image %s (%d features, %d attempts, threshold %d)",
            session_key,
            image.id,
            state.feature_count,
            config.max_attempts,
            config.win_threshold,
        )
        return state

    async def restore(self, session_key: str, current_image_id: Optional[str]) -> Optional[SessionState]:
        """Load the stored session if it is still valid for ``current_image_id``.

        Stored snapshots that fail validation are deleted.
        """
        raw = await self.store.load(session_key)
        if raw is None:
            return None
        state = resume_session(raw, current_image_id)
        if state is None:
            LOGGER.info("Snapshot for %s is stale or finished; discarding", session_key)
            await self.store.delete(session_key)
        return state

    async def record(self, session_key: str, state: SessionState) -> None:
        """Persist an active session or drop the snapshot once it has ended."""
        if state.is_active:
            image_id = state.image.id if state.image else None
            await self.store.save(session_key, encode_snapshot(state), image_id=image_id)
        else:
            await self.store.delete(session_key)

    async def reset(self, session_key: str) -> SessionState:
        await self.store.delete(session_key)
        return reset_session()

    async def play_guess(
        self,
        session_key: str,
        current_image_id: str,
        guess: str,
        hint_provider: HintProvider,
        *,
        sequence: Optional[int] = None,
    ) -> GuessTurn:
        """Apply a guess to the stored session and persist the result.

        The scored guess (counters, flags, player message, sequence) is stored
        before the hint provider is awaited, so a retry arriving meanwhile is
        seen as a duplicate and an abandoned request keeps its result. The
        assistant reply is attached afterwards; if the request is cancelled
        while waiting, a generic error reply is stored instead.

        Raises:
            SessionNotFoundError: If no active session matches the key and image.
        """
        async with self._lock(session_key):
            previous = await self.restore(session_key, current_image_id)
            if previous is None:
                raise SessionNotFoundError(f"No active game for session {session_key}")

            if is_duplicate(previous, sequence):
                LOGGER.info("Dropping duplicate guess %s for %s (last=%s)", sequence, session_key, previous.last_sequence)
                return GuessTurn(previous=previous, state=previous)
            outcome = evaluate_guess(previous, guess)
            if outcome is None:
                return GuessTurn(previous=previous, state=previous)

            pending = apply_outcome(previous, outcome, sequence=sequence)
            await self.record(session_key, pending)

        try:
            reply = await guess_reply(previous, outcome, hint_provider)
        except asyncio.CancelledError:
            LOGGER.warning("Guess for %s cancelled while waiting for a hint", session_key)
            await self._attach_reply(session_key, pending, messages.HINT_ERROR_MESSAGE)
            raise

        state = await self._attach_reply(session_key, pending, reply)
        return GuessTurn(previous=previous, state=state, outcome=outcome)

    async def _attach_reply(self, session_key: str, pending: SessionState, reply: str) -> SessionState:
        """Add the assistant reply to ``pending`` and store it if nothing moved on meanwhile."""
        state = append_reply(pending, reply)
        if not pending.is_active:
            # Finished games were already dropped from the store.
            return state

        async with self._lock(session_key):
            if await self.store.load(session_key) == encode_snapshot(pending):
                await self.record(session_key, state)
            else:
                LOGGER.warning("Session %s changed while waiting for a hint; reply not stored", session_key)
        return state

    def _lock(self, session_key: str) -> asyncio.Lock:
        lock = self._locks.get(session_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_key] = lock
        return lock
