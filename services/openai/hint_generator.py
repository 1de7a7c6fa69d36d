"""Hint generation for wrong guesses using OpenAI's Responses API.

``request_hint`` raises ``HintFailure``/``SafetyBlocked``; ``get_hint`` is the
non-raising variant the game loop uses, mapping failures to fixed chat texts.
"""

import logging
import os
import time
from typing import Any, Dict, List, Sequence

import openai
from openai import AsyncOpenAI

from models.errors import HintFailure, SafetyBlocked
from models.session_models import ChatMessage, ChatRole
from services.game.messages import EMPTY_HINT_MESSAGE, HINT_ERROR_MESSAGE, SAFETY_BLOCKED_MESSAGE
from services.openai.game_prompts import hint_system_prompt, hint_user_prompt
from services.openai.response_parser import extract_text, extract_usage, is_content_filtered

LOGGER = logging.getLogger(__name__)
DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
HISTORY_LIMIT = 20
SAFETY_CODES = {"content_policy_violation", "content_filter", "safety"}


def _is_safety_error(exc: Exception) -> bool:
    code = getattr(exc, "code", None)
    if code in SAFETY_CODES:
        return True
    return "safety" in str(exc).lower() or "content_policy" in str(exc).lower()


def history_inputs(chat_history: Sequence[ChatMessage], limit: int = HISTORY_LIMIT) -> List[Dict[str, Any]]:
    """Map recent chat messages onto Responses API input messages."""
    recent = chat_history[-limit:] if limit else chat_history
    return [
        {"role": "user" if msg.role == ChatRole.PLAYER else "assistant", "content": msg.text}
        for msg in recent
        if msg.text
    ]


class HintGenerator:
    """Produce short, encouraging guidance toward the remaining features."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_MODEL, max_output_tokens: int = 256) -> None:
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.max_output_tokens = max_output_tokens

    async def request_hint(
        self,
        remaining_features: Sequence[str],
        guess: str,
        chat_history: Sequence[ChatMessage],
    ) -> str:
        """Return the model's hint text.

        Raises:
            SafetyBlocked: If the provider refused on content-policy grounds.
            HintFailure: On any other provider error.
        """
        start = time.time()
        inputs = [
            {
                "type": "message",
                "role": "system",
                "content": [{"type": "input_text", "text": hint_system_prompt()}],
            },
            *history_inputs(chat_history),
            {
                "type": "message",
                "role": "user",
                "content": [{"type": "input_text", "text": hint_user_prompt(remaining_features, guess)}],
            },
        ]
        try:
            response = await self.client.responses.create(
                model=self.model,
                input=inputs,
                temperature=0.8,
                max_output_tokens=self.max_output_tokens,
            )
        except openai.OpenAIError as exc:
            if _is_safety_error(exc):
                LOGGER.warning("Hint request blocked by safety settings: %s", exc)
                raise SafetyBlocked(str(exc)) from exc
            LOGGER.error("OpenAI Responses API error: %s", exc)
            raise HintFailure(str(exc)) from exc

        if is_content_filtered(response):
            raise SafetyBlocked("Hint response was filtered")

        text = extract_text(response).strip()
        usage = extract_usage(response)
        LOGGER.info(
            "Hint generation latency: %.3fs (tokens in=%s out=%s)",
            time.time() - start,
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return text

    async def get_hint(
        self,
        remaining_features: Sequence[str],
        guess: str,
        chat_history: Sequence[ChatMessage],
    ) -> str:
        """Return hint text, or a fixed apology/content-blocked message on failure."""
        try:
            text = await self.request_hint(remaining_features, guess, chat_history)
        except SafetyBlocked:
            return SAFETY_BLOCKED_MESSAGE
        except HintFailure:
            return HINT_ERROR_MESSAGE
        return text or EMPTY_HINT_MESSAGE
