"""Image generation for new games using OpenAI's Images API."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

LOGGER = logging.getLogger(__name__)
DEFAULT_IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3")
DEFAULT_IMAGE_SIZE = os.getenv("OPENAI_IMAGE_SIZE", "1024x1024")


@dataclass
class GeneratedImage:
    """Result of one image generation call.

    Attributes:
        url: Hosted URL, or a PNG data URL when only bytes were returned.
        alt_text: Caption for the image (revised prompt when the model gives one).
        image_b64: Base64 PNG payload when the provider returned bytes.
    """

    url: str
    alt_text: str
    image_b64: Optional[str] = None


class ImageGenerator:
    """Generate a single image for the player's topic and style."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_IMAGE_MODEL, size: str = DEFAULT_IMAGE_SIZE) -> None:
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.model = model
        self.size = size

    async def generate_image(self, prompt: str) -> Optional[GeneratedImage]:
        """Return the generated image, or None if the provider produced nothing.

        Provider errors (including content-policy rejections) are logged and
        reported as None so the caller can switch to the static catalog.
        """
        if not (prompt or "").strip():
            raise ValueError("An image prompt is required.")

        start = time.time()
        try:
            response = await self.client.images.generate(
                model=self.model,
                prompt=prompt,
                size=self.size,
                n=1,
            )
        except openai.OpenAIError as exc:
            LOGGER.error("OpenAI image generation failed: %s", exc)
            return None

        image = self._parse_image(response, prompt)
        LOGGER.info("Image generation latency: %.3fs (image=%s)", time.time() - start, bool(image))
        return image

    @staticmethod
    def _parse_image(response: Any, prompt: str) -> Optional[GeneratedImage]:
        data = getattr(response, "data", None) or []
        if not data:
            LOGGER.warning("Image generation returned no data.")
            return None

        first = data[0]
        url = getattr(first, "url", None)
        b64 = getattr(first, "b64_json", None)
        if not url and not b64:
            LOGGER.warning("Image generation returned neither a URL nor image bytes.")
            return None

        alt_text = (getattr(first, "revised_prompt", None) or prompt).strip()
        return GeneratedImage(
            url=url or f"data:image/png;base64,{b64}",
            alt_text=alt_text,
            image_b64=b64,
        )
