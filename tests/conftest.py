from __future__ import annotations

import base64
import io
import json
from types import SimpleNamespace

import pytest
from PIL import Image

from models.image_record import ImageRecord
from services.openai.feature_schema import FUNCTION_NAME


def feature_response(features):
    return SimpleNamespace(
        output=[
            SimpleNamespace(
                type="function_call",
                name=FUNCTION_NAME,
                arguments=json.dumps({"features": features}),
            )
        ],
        usage=SimpleNamespace(input_tokens=42, output_tokens=12),
    )


def text_response(text):
    return SimpleNamespace(
        output=[
            SimpleNamespace(
                type="message",
                content=[SimpleNamespace(type="output_text", text=text)],
            )
        ],
        usage=SimpleNamespace(input_tokens=30, output_tokens=8),
    )


def png_b64(size=(600, 300), color=(200, 30, 30)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return base64.b64encode(buf.getvalue()).decode("ascii")


class FakeResponses:
    """Stands in for `client.responses`; feature calls carry `tools`, hint calls do not."""

    def __init__(self, features=None, hint="Good try! Look closer at the ground.", error=None):
        self.features = features if features is not None else ["dog", "grass", "collar"]
        self.hint = hint
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if "tools" in kwargs:
            return feature_response(self.features)
        return text_response(self.hint)


class FakeImages:
    def __init__(self, url="https://images.example/generated.png", b64_json=None, error=None):
        self.url = url
        self.b64_json = b64_json
        self.error = error
        self.calls = []

    async def generate(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        item = SimpleNamespace(url=self.url, b64_json=self.b64_json, revised_prompt="A dog lying on the grass")
        return SimpleNamespace(data=[item])


class StubHints:
    """Hint provider that records calls and replays a fixed answer or error."""

    def __init__(self, text="Look closer at the background.", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def get_hint(self, remaining_features, guess, chat_history):
        self.calls.append((list(remaining_features), guess, list(chat_history)))
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def fake_client():
    return SimpleNamespace(responses=FakeResponses(), images=FakeImages())


@pytest.fixture
def stub_hints():
    return StubHints()


@pytest.fixture
def dog_image():
    return ImageRecord(
        id="img-1",
        url="https://images.example/dog.png",
        alt_text="A dog on grass",
        features=["dog", "grass", "collar"],
    )


@pytest.fixture
def database_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path))
    return tmp_path
