import asyncio

from models.errors import HintFailure, SafetyBlocked
from models.session_models import ChatRole, SessionConfig
from services.game import messages, state_machine
from services.game.session_lifecycle import start_new_session
from services.game.state_machine import apply_guess, apply_outcome, evaluate_guess


def _start(image, attempts=3, threshold=2):
    return start_new_session(SessionConfig(max_attempts=attempts, win_threshold=threshold), image)


def test_full_game_until_out_of_attempts(dog_image, stub_hints):
    state = _start(dog_image)

    state = asyncio.run(apply_guess(state, "a cat", stub_hints))
    assert state.attempts_remaining == 2
    assert state.found_features == set()

    state = asyncio.run(apply_guess(state, "dog", stub_hints))
    assert state.found_features == {"dog"}
    assert state.attempts_remaining == 2

    state = asyncio.run(apply_guess(state, "grass", stub_hints))
    assert state.found_features == {"dog", "grass"}
    assert state.threshold_met is True
    assert state.finished is False

    state = asyncio.run(apply_guess(state, "xyz", stub_hints))
    assert state.attempts_remaining == 1

    state = asyncio.run(apply_guess(state, "xyz", stub_hints))
    assert state.attempts_remaining == 0
    assert state.finished is True
    assert state.all_found is False
    assert state.is_game_over is True
    assert "collar" in state.chat_history[-1].text

    # Hints were only requested for the three misses.
    assert [call[1] for call in stub_hints.calls] == ["a cat", "xyz", "xyz"]


def test_finding_everything_finishes_the_game(dog_image, stub_hints):
    state = _start(dog_image)

    state = asyncio.run(apply_guess(state, "dog on grass", stub_hints))
    state = asyncio.run(apply_guess(state, "collar", stub_hints))

    assert state.all_found is True
    assert state.finished is True
    assert state.attempts_remaining == 3
    assert state.chat_history[-1].text.endswith(messages.all_found_message(3))
    assert stub_hints.calls == []


def test_correct_guess_acknowledges_with_count(dog_image, stub_hints):
    state = asyncio.run(apply_guess(_start(dog_image), "Dog", stub_hints))

    player, assistant = state.chat_history
    assert player.role == ChatRole.PLAYER and player.text == "Dog"
    assert assistant.role == ChatRole.ASSISTANT
    assert assistant.text == "Yes, 'dog' is correct! (1/3 features found)"


def test_help_request_costs_nothing_and_asks_for_hint(dog_image, stub_hints):
    state = asyncio.run(apply_guess(_start(dog_image), "can I get a hint", stub_hints))

    assert state.attempts_remaining == 3
    assert state.found_features == set()
    assert state.chat_history[-1].text == stub_hints.text
    remaining, guess, _ = stub_hints.calls[0]
    assert remaining == ["dog", "grass", "collar"]
    assert guess == "can I get a hint"


def test_finished_state_is_never_changed(dog_image, stub_hints):
    state = _start(dog_image, attempts=1)
    state = asyncio.run(apply_guess(state, "nope", stub_hints))
    assert state.finished is True

    after = asyncio.run(apply_guess(state, "dog", stub_hints))

    assert after is state
    assert after.found_features == set()
    assert evaluate_guess(state, "dog") is None


def test_unstarted_state_or_blank_guess_is_ignored(dog_image, stub_hints):
    from models.session_models import SessionState

    idle = SessionState()
    assert asyncio.run(apply_guess(idle, "dog", stub_hints)) is idle

    started = _start(dog_image)
    assert asyncio.run(apply_guess(started, "   ", stub_hints)) is started


def test_duplicate_sequence_is_dropped(dog_image, stub_hints):
    state = asyncio.run(apply_guess(_start(dog_image), "a cat", stub_hints, sequence=1))
    assert state.last_sequence == 1

    replayed = asyncio.run(apply_guess(state, "a cat", stub_hints, sequence=1))

    assert replayed is state
    assert replayed.attempts_remaining == 2
    assert len(stub_hints.calls) == 1


def test_hint_failure_keeps_the_guess_result(dog_image, stub_hints):
    stub_hints.error = HintFailure("provider down")

    state = asyncio.run(apply_guess(_start(dog_image), "a cat", stub_hints))

    assert state.attempts_remaining == 2
    assert state.chat_history[-1].text == messages.HINT_ERROR_MESSAGE


def test_safety_block_has_its_own_message(dog_image, stub_hints):
    stub_hints.error = SafetyBlocked("blocked")

    state = asyncio.run(apply_guess(_start(dog_image), "a cat", stub_hints))

    assert state.chat_history[-1].text == messages.SAFETY_BLOCKED_MESSAGE


def test_hint_timeout_falls_back(dog_image, monkeypatch):
    class SlowHints:
        async def get_hint(self, remaining_features, guess, chat_history):
            await asyncio.sleep(1)
            return "too late"

    monkeypatch.setattr(state_machine, "HINT_TIMEOUT_SECONDS", 0.01)

    state = asyncio.run(apply_guess(_start(dog_image), "a cat", SlowHints()))

    assert state.attempts_remaining == 2
    assert state.chat_history[-1].text == messages.HINT_ERROR_MESSAGE


def test_apply_outcome_can_skip_recording_the_guess(dog_image):
    state = _start(dog_image)
    outcome = evaluate_guess(state, "dog")

    updated = apply_outcome(state, outcome, "ok", record_guess=False)

    assert [m.role for m in updated.chat_history] == [ChatRole.ASSISTANT]
    assert state.chat_history == []


def test_hint_and_game_over_use_the_remaining_features(dog_image, stub_hints):
    state = asyncio.run(apply_guess(_start(dog_image, attempts=1), "Grass", stub_hints))
    assert state.remaining_features == ["dog", "collar"]

    state = asyncio.run(apply_guess(state, "a boat", stub_hints))
    assert state.finished is True

    remaining, _, _ = stub_hints.calls[0]
    assert remaining == ["dog", "collar"]
    assert state.chat_history[-1].text.endswith(messages.game_over_message(["dog", "collar"]))
