"""Apply player guesses to a game session.

``evaluate_guess`` and ``apply_outcome`` are pure; ``guess_reply`` asks the
(awaitable) hint provider and ``apply_guess`` wires the three together. Only
failed, non-help guesses cost an attempt. A finished state is returned
untouched by ``evaluate_guess``, ``apply_outcome`` and ``apply_guess``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, replace
from typing import FrozenSet, List, Optional, Protocol, Sequence

from models.errors import HintFailure, SafetyBlocked
from models.session_models import ChatMessage, ChatRole, SessionState
from services.game import messages
from services.game.feature_matcher import match

LOGGER = logging.getLogger(__name__)
HINT_TIMEOUT_SECONDS = float(os.getenv("HINT_TIMEOUT_SECONDS", "20"))


class HintProvider(Protocol):
    async def get_hint(
        self, remaining_features: Sequence[str], guess: str, chat_history: Sequence[ChatMessage]
    ) -> str:
        ...


@dataclass(frozen=True)
class GuessOutcome:
    """Counters and flags computed for one guess, before any chat text."""

    guess: str
    newly_found: List[str]
    is_help_request: bool
    consumes_attempt: bool
    found_features: FrozenSet[str]
    attempts_remaining: int
    all_found: bool
    threshold_met: bool
    finished: bool


def can_accept_guess(state: SessionState, guess: str) -> bool:
    return (
        state.started
        and not state.finished
        and state.image is not None
        and bool((guess or "").strip())
    )


def is_duplicate(state: SessionState, sequence: Optional[int]) -> bool:
    """True when ``sequence`` was already applied (client retry)."""
    return sequence is not None and sequence <= state.last_sequence


def evaluate_guess(state: SessionState, guess: str) -> Optional[GuessOutcome]:
    """Score ``guess`` against the remaining features; None if not accepted."""
    if not can_accept_guess(state, guess):
        return None

    features = state.image.features
    result = match(guess, features, state.found_features)
    found = frozenset(state.found_features | set(result.normalized))

    consumes_attempt = not result.matched and not result.is_help_request
    attempts = max(0, state.attempts_remaining - (1 if consumes_attempt else 0))
    all_found = len(found) == len(features)
    threshold_met = len(found) >= state.config.win_threshold

    return GuessOutcome(
        guess=guess.strip(),
        newly_found=list(result.matched),
        is_help_request=result.is_help_request,
        consumes_attempt=consumes_attempt,
        found_features=found,
        attempts_remaining=attempts,
        all_found=all_found,
        threshold_met=threshold_met,
        finished=all_found or attempts == 0,
    )


def apply_outcome(
    state: SessionState,
    outcome: GuessOutcome,
    assistant_text: Optional[str] = None,
    *,
    record_guess: bool = True,
    sequence: Optional[int] = None,
) -> SessionState:
    """Return the next state with counters, flags and chat updated.

    Without ``assistant_text`` only the player's message is appended; the
    reply is added later with ``append_reply``.
    """
    if state.finished:
        return state

    history = list(state.chat_history)
    if record_guess:
        history.append(ChatMessage(role=ChatRole.PLAYER, text=outcome.guess))
    if assistant_text is not None:
        history.append(ChatMessage(role=ChatRole.ASSISTANT, text=assistant_text))

    return replace(
        state,
        chat_history=history,
        found_features=set(outcome.found_features),
        attempts_remaining=outcome.attempts_remaining,
        all_found=outcome.all_found,
        threshold_met=outcome.threshold_met,
        finished=outcome.finished,
        last_sequence=sequence if sequence is not None else state.last_sequence,
    )


def append_reply(state: SessionState, text: str) -> SessionState:
    """Append the assistant's reply. Applies to finished states too."""
    return replace(state, chat_history=[*state.chat_history, ChatMessage(role=ChatRole.ASSISTANT, text=text)])


def _remaining_after(state: SessionState, outcome: GuessOutcome) -> List[str]:
    return replace(state, found_features=set(outcome.found_features)).remaining_features


async def _hint_text(
    hint_provider: HintProvider,
    remaining: List[str],
    guess: str,
    history: Sequence[ChatMessage],
) -> str:
    try:
        return await asyncio.wait_for(
            hint_provider.get_hint(remaining, guess, history), timeout=HINT_TIMEOUT_SECONDS
        )
    except SafetyBlocked:
        return messages.SAFETY_BLOCKED_MESSAGE
    except HintFailure as exc:
        LOGGER.warning("Hint provider failed: %s", exc)
        return messages.HINT_ERROR_MESSAGE
    except asyncio.TimeoutError:
        LOGGER.warning("Hint provider timed out after %.1fs", HINT_TIMEOUT_SECONDS)
        return messages.HINT_ERROR_MESSAGE


def compose_reply(state: SessionState, outcome: GuessOutcome, hint: Optional[str] = None) -> str:
    """Build the assistant message for an outcome."""
    total = len(state.image.features)
    parts: List[str] = []
    if outcome.newly_found:
        parts.append(messages.acknowledgement(outcome.newly_found, len(outcome.found_features), total))
    else:
        parts.append(hint or messages.EMPTY_HINT_MESSAGE)

    if outcome.all_found:
        parts.append(messages.all_found_message(total))
    elif outcome.finished:
        parts.append(messages.game_over_message(_remaining_after(state, outcome)))
    return " ".join(parts)


async def guess_reply(state: SessionState, outcome: GuessOutcome, hint_provider: HintProvider) -> str:
    """Assistant text for ``outcome``; asks for a hint only when nothing new was found.

    ``state`` is the session as it was before the guess.
    """
    hint = None
    if not outcome.newly_found:
        hint = await _hint_text(hint_provider, _remaining_after(state, outcome), outcome.guess, state.chat_history)
    return compose_reply(state, outcome, hint)


async def apply_guess(
    state: SessionState,
    guess: str,
    hint_provider: HintProvider,
    *,
    record_guess: bool = True,
    sequence: Optional[int] = None,
) -> SessionState:
    """Apply one guess and return the next state.

    Args:
        state: Current session state.
        guess: Raw player input.
        hint_provider: Asked for guidance when nothing new was found.
        record_guess: Append the player's message (False if the caller did).
        sequence: Client submission number; stale numbers are ignored.
    """
    if is_duplicate(state, sequence):
        LOGGER.info("Dropping duplicate guess submission %s (last=%s)", sequence, state.last_sequence)
        return state

    outcome = evaluate_guess(state, guess)
    if outcome is None:
        return state

    reply = await guess_reply(state, outcome, hint_provider)
    return apply_outcome(state, outcome, reply, record_guess=record_guess, sequence=sequence)
