import asyncio
from types import SimpleNamespace

import openai
import pytest

from models.errors import GenerationFailure
from services.openai.feature_generator import MAX_FEATURES, FeatureGenerator, split_feature_text
from services.openai.feature_schema import FUNCTION_NAME
from services.openai.game_prompts import build_image_prompt
from services.openai.image_generator import ImageGenerator

from conftest import FakeImages, FakeResponses, text_response


def test_features_come_from_the_tool_call():
    responses = FakeResponses(features=["Dog", "dog", "green grass", "red collar"])
    generator = FeatureGenerator(SimpleNamespace(responses=responses))

    features = asyncio.run(generator.generate_features("A dog on the grass"))

    assert features == ["Dog", "green grass", "red collar"]
    call = responses.calls[0]
    assert call["tool_choice"] == {"type": "function", "name": FUNCTION_NAME}
    assert "A dog on the grass" in call["input"][1]["content"][0]["text"]


def test_features_are_capped():
    responses = FakeResponses(features=[f"feature {i}" for i in range(12)])

    features = asyncio.run(FeatureGenerator(SimpleNamespace(responses=responses)).generate_features("busy"))

    assert len(features) == MAX_FEATURES


def test_features_fall_back_to_text_output():
    class TextOnly(FakeResponses):
        async def create(self, **kwargs):
            return text_response("1. dog\n2. grass, red collar\n- blue sky")

    features = asyncio.run(FeatureGenerator(SimpleNamespace(responses=TextOnly())).generate_features("park"))

    assert features == ["dog", "grass", "red collar", "blue sky"]


def test_blank_description_skips_the_call():
    responses = FakeResponses()

    assert asyncio.run(FeatureGenerator(SimpleNamespace(responses=responses)).generate_features("  ")) == []
    assert responses.calls == []


def test_provider_error_raises_generation_failure():
    responses = FakeResponses(error=openai.OpenAIError("boom"))

    with pytest.raises(GenerationFailure):
        asyncio.run(FeatureGenerator(SimpleNamespace(responses=responses)).generate_features("park"))


def test_split_feature_text_strips_markers_and_quotes():
    assert split_feature_text('* "tall tree"\n3) bench,, ') == ["tall tree", "bench"]


def test_image_generator_returns_url_and_caption():
    images = FakeImages()
    generator = ImageGenerator(SimpleNamespace(images=images), model="img-model", size="512x512")

    image = asyncio.run(generator.generate_image("Draw a dog"))

    assert image.url == "https://images.example/generated.png"
    assert image.alt_text == "A dog lying on the grass"
    assert image.image_b64 is None
    assert images.calls[0] == {"model": "img-model", "prompt": "Draw a dog", "size": "512x512", "n": 1}


def test_image_generator_builds_data_url_from_bytes():
    images = FakeImages(url=None, b64_json="aGVsbG8=")

    image = asyncio.run(ImageGenerator(SimpleNamespace(images=images)).generate_image("Draw a dog"))

    assert image.url == "data:image/png;base64,aGVsbG8="
    assert image.image_b64 == "aGVsbG8="


def test_image_generator_failure_returns_none():
    images = FakeImages(error=openai.OpenAIError("content_policy_violation"))

    assert asyncio.run(ImageGenerator(SimpleNamespace(images=images)).generate_image("Draw a dog")) is None


def test_image_generator_requires_a_prompt():
    with pytest.raises(ValueError):
        asyncio.run(ImageGenerator(SimpleNamespace(images=FakeImages())).generate_image(" "))


def test_image_prompt_mentions_setup_choices():
    prompt = build_image_prompt("farm animals", "hard", age=8, style="watercolor")

    assert "hard description game" in prompt
    assert "age is 8" in prompt
    assert "watercolor" in prompt
    assert prompt.endswith("topic: farm animals.")
    assert "unspecified" in build_image_prompt("boats", "easy")
