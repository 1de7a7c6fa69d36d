"""Feature extraction for generated images using OpenAI's Responses API."""

import json
import logging
import os
import re
import time
from typing import Any, List

from openai import AsyncOpenAI

from models.errors import GenerationFailure
from services.game.feature_matcher import dedupe_features
from services.openai.feature_schema import FUNCTION_DEFINITION, FUNCTION_NAME
from services.openai.game_prompts import features_system_prompt, features_user_prompt
from services.openai.response_parser import extract_text, extract_usage, parse_function_call

LOGGER = logging.getLogger(__name__)
DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
MAX_FEATURES = 7
_LIST_MARKER = re.compile(r"^(?:[-*\u2022]|\d+[.)])\s*")


def split_feature_text(text: str) -> List[str]:
    """Parse a comma- or newline-separated feature list from free text."""
    pieces = []
    for line in (text or "").replace("\n", ",").split(","):
        cleaned = _LIST_MARKER.sub("", line.strip()).strip().strip("\"'")
        if cleaned:
            pieces.append(cleaned)
    return pieces


class FeatureGenerator:
    """Ask the model for the guessable features of an image description."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_MODEL) -> None:
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model

    async def generate_features(self, description: str) -> List[str]:
        """Return up to ``MAX_FEATURES`` distinct features; may be empty.

        Raises:
            GenerationFailure: If the provider call fails.
        """
        if not (description or "").strip():
            return []

        start = time.time()
        response = await self._create_response(description.strip())
        features = dedupe_features(self._parse_features(response))[:MAX_FEATURES]

        usage = extract_usage(response)
        LOGGER.info(
            "Feature generation latency: %.3fs (%s features, tokens in=%s out=%s)",
            time.time() - start,
            len(features),
            usage["input_tokens"],
            usage["output_tokens"],
        )
        return features

    async def _create_response(self, description: str) -> Any:
        try:
            return await self.client.responses.create(
                model=self.model,
                input=[
                    {
                        "type": "message",
                        "role": "system",
                        "content": [{"type": "input_text", "text": features_system_prompt()}],
                    },
                    {
                        "type": "message",
                        "role": "user",
                        "content": [{"type": "input_text", "text": features_user_prompt(description)}],
                    },
                ],
                tools=[FUNCTION_DEFINITION],
                tool_choice={"type": "function", "name": FUNCTION_NAME},
            )
        except Exception as exc:
            LOGGER.error("Error during OpenAI feature generation: %s", exc)
            raise GenerationFailure("Feature generation failed") from exc

    @staticmethod
    def _parse_features(response: Any) -> List[str]:
        """Read features from the tool call, falling back to a plain text list."""
        try:
            arguments = parse_function_call(response, tool_name=FUNCTION_NAME)
        except (RuntimeError, json.JSONDecodeError) as exc:
            LOGGER.warning("No usable feature tool call, parsing text output: %s", exc)
            return split_feature_text(extract_text(response))

        raw = arguments.get("features")
        if not isinstance(raw, list):
            return []
        return [str(item) for item in raw if isinstance(item, (str, int, float))]
