import logging
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import HTTPException, Request

from dal.image_dal import ImageDAL
from models.errors import GenerationFailure
from models.image_record import Difficulty, ImageRecord
from models.session_models import SessionConfig, SessionState
from services.game.image_catalog import FALLBACK_FEATURES, get_image_by_difficulty
from services.game.session_lifecycle import SessionLifecycleManager
from services.openai.feature_generator import FeatureGenerator
from services.openai.game_prompts import build_image_prompt
from services.openai.hint_generator import HintGenerator
from services.openai.image_generator import ImageGenerator
from services.thumbnail_generator import ThumbnailGenerator

LOGGER = logging.getLogger(__name__)


def state_to_response(session_key: str, state: SessionState) -> Dict[str, Any]:
    """Public view of a session. Unfound features are never included."""
    image = state.image
    return {
        "session_key": session_key,
        "image": {
            "id": image.id,
            "url": image.url,
            "alt_text": image.alt_text,
            "difficulty": image.difficulty.value,
        }
        if image
        else None,
        "feature_count": state.feature_count,
        "found_features": state.found_in_display_order,
        "attempts_remaining": state.attempts_remaining,
        "max_attempts": state.config.max_attempts,
        "win_threshold": state.config.win_threshold,
        "started": state.started,
        "finished": state.finished,
        "threshold_met": state.threshold_met,
        "all_found": state.all_found,
        "game_over": state.is_game_over,
        "last_sequence": state.last_sequence,
        "chat_history": [{"role": m.role.value, "text": m.text} for m in state.chat_history],
    }


def _manager(request: Request) -> SessionLifecycleManager:
    return request.app.state.session_manager


async def _generate_image(
    request: Request, topic: str, difficulty: Difficulty, age: Optional[int], style: str
) -> tuple[ImageRecord, List[str]]:
    """Generate an image and its features, falling back to the static catalog.

    Returns the image and a list of notices for the player.

    Raises:
        GenerationFailure: If neither generation nor the catalog yields an image.
    """
    notices: List[str] = []
    openai_client = getattr(request.app.state, "openai_client", None)

    generated = None
    if openai_client is not None:
        prompt = build_image_prompt(topic, difficulty.value, age=age, style=style)
        generated = await ImageGenerator(openai_client).generate_image(prompt)

    if generated is None:
        image = get_image_by_difficulty(difficulty)
        if image is None:
            raise GenerationFailure("Image generation failed and no fallback image is available.")
        notices.append("Image generation is unavailable right now, so here is a picture from our collection.")
        return image, notices

    try:
        features = await FeatureGenerator(openai_client).generate_features(generated.alt_text)
    except GenerationFailure as exc:
        LOGGER.error("Feature generation failed: %s", exc)
        features = []
    if not features:
        features = list(FALLBACK_FEATURES)
        notices.append("Could not work out the details of this image; using generic features.")

    thumbnail = None
    if generated.image_b64:
        try:
            thumbnail = ThumbnailGenerator().thumbnail_png(generated.image_b64)
        except ValueError as exc:
            LOGGER.warning("Could not create thumbnail: %s", exc)

    image = ImageRecord(
        id=f"gen-{uuid4().hex}",
        url=generated.url,
        alt_text=generated.alt_text,
        features=features,
        difficulty=difficulty,
        thumbnail=thumbnail,
        created_at=int(time.time()),
    )
    return image, notices


async def start_game(
    request: Request,
    topic: str,
    difficulty: Difficulty = Difficulty.EASY,
    style: str = "any",
    age: Optional[int] = None,
    attempts: int = 10,
    win_threshold: int = 4,
    session_key: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a new game: image, features, session and stored image record.

    Args:
        request: FastAPI Request (used to access app.state shared resources).
        topic: Subject of the image to generate.
        difficulty: Complexity of the picture.
        style: Art style, "any" for no preference.
        age: Player age used to tune the picture.
        attempts: Number of failed guesses allowed.
        win_threshold: Features needed to meet the win threshold.
        session_key: Existing key to reuse; a new one is issued otherwise.

    Returns:
        The session view plus a ``notices`` list.

    Raises:
        ConfigurationError: If the win threshold exceeds the number of features.
        GenerationFailure: If no image could be produced.
    """
    session_key = session_key or uuid4().hex
    image, notices = await _generate_image(request, topic, difficulty, age, style)

    config = SessionConfig(
        max_attempts=attempts,
        win_threshold=win_threshold,
        topic=topic,
        style=style,
        age=age,
        difficulty=difficulty,
    )
    state = await _manager(request).begin(session_key, config, image)

    db_initializer = getattr(request.app.state, "db_initializer", None)
    if db_initializer is not None:
        await ImageDAL(db_initializer).save_image(state.image)

    response = state_to_response(session_key, state)
    response["notices"] = notices
    return response


async def resume_game(request: Request, session_key: str, image_id: Optional[str]) -> Dict[str, Any]:
    """Return the stored session if it still matches ``image_id``.

    Raises:
        HTTPException(404) when there is nothing to resume.
    """
    state = await _manager(request).restore(session_key, image_id)
    if state is None:
        raise HTTPException(status_code=404, detail="No active game to resume")
    return state_to_response(session_key, state)


async def submit_guess(
    request: Request,
    session_key: str,
    guess: str,
    image_id: str,
    sequence: Optional[int] = None,
) -> Dict[str, Any]:
    """Apply a guess and return the updated session plus the assistant reply."""
    hint_generator = HintGenerator(request.app.state.openai_client)
    turn = await _manager(request).play_guess(session_key, image_id, guess, hint_generator, sequence=sequence)
    outcome = turn.outcome

    response = state_to_response(session_key, turn.state)
    response.update(
        {
            "message": turn.state.chat_history[-1].text if outcome else None,
            "newly_found": list(outcome.newly_found) if outcome else [],
            "is_help_request": bool(outcome and outcome.is_help_request),
            "duplicate": outcome is None,
        }
    )
    return response


async def reset_game(request: Request, session_key: str) -> Dict[str, Any]:
    state = await _manager(request).reset(session_key)
    LOGGER.info("Reset session %s", session_key)
    return state_to_response(session_key, state)
