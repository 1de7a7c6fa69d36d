import pytest
from pydantic import ValidationError

from models.session_models import ChatMessage, ChatRole, SessionConfig
from models.snapshot_schema import SessionSnapshot
from services.game.session_lifecycle import start_new_session


def _payload(dog_image, **overrides):
    state = start_new_session(SessionConfig(max_attempts=4, win_threshold=2), dog_image)
    payload = SessionSnapshot.from_state(state).model_dump(mode="json")
    payload.update(overrides)
    return payload


def test_snapshot_preserves_state(dog_image):
    state = start_new_session(SessionConfig(max_attempts=4, win_threshold=2, topic="pets", age=9), dog_image)
    state.found_features = {"grass", "dog"}
    state.threshold_met = True
    state.chat_history = [ChatMessage(ChatRole.PLAYER, "dog and grass")]
    state.last_sequence = 3

    restored = SessionSnapshot.model_validate_json(SessionSnapshot.from_state(state).model_dump_json()).to_state()

    assert restored == state


def test_unknown_fields_are_rejected(dog_image):
    with pytest.raises(ValidationError):
        SessionSnapshot.model_validate(_payload(dog_image, secret="x"))


def test_wrong_types_are_rejected(dog_image):
    with pytest.raises(ValidationError):
        SessionSnapshot.model_validate(_payload(dog_image, attempts_remaining=-1))
    with pytest.raises(ValidationError):
        SessionSnapshot.model_validate(_payload(dog_image, chat_history=[{"role": "system", "text": "hi"}]))


def test_finished_flag_must_match_terminal_conditions(dog_image):
    with pytest.raises(ValidationError):
        SessionSnapshot.model_validate(_payload(dog_image, finished=True))
    with pytest.raises(ValidationError):
        SessionSnapshot.model_validate(_payload(dog_image, attempts_remaining=0))


def test_threshold_and_all_found_flags_are_checked(dog_image):
    with pytest.raises(ValidationError):
        SessionSnapshot.model_validate(_payload(dog_image, threshold_met=True))
    with pytest.raises(ValidationError):
        SessionSnapshot.model_validate(_payload(dog_image, all_found=True, finished=True))


def test_started_session_needs_an_image(dog_image):
    with pytest.raises(ValidationError):
        SessionSnapshot.model_validate(_payload(dog_image, image=None))


def test_unsupported_version_is_rejected(dog_image):
    with pytest.raises(ValidationError):
        SessionSnapshot.model_validate(_payload(dog_image, version=99))
