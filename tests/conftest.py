import asyncio
import base64
import io
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import httpx
import openai
import pytest
from PIL import Image

from services.genai.client import GenerativeServiceClient
from services.mode_controller import ModeController
from services.session_store import SessionStore
from utils.settings import Settings


def make_png(color: str = "red", size=(8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def text_item(text: str, citations: Optional[List[tuple]] = None) -> SimpleNamespace:
    annotations = [
        SimpleNamespace(type="url_citation", url=url, title=title, start_index=0, end_index=0)
        for url, title in (citations or [])
    ]
    return SimpleNamespace(
        type="message",
        role="assistant",
        content=[SimpleNamespace(type="output_text", text=text, annotations=annotations)],
    )


def image_item(data: bytes, output_format: str = "png") -> SimpleNamespace:
    return SimpleNamespace(
        type="image_generation_call",
        status="completed",
        output_format=output_format,
        result=base64.b64encode(data).decode("utf-8"),
    )


def response_with(*items: Any) -> SimpleNamespace:
    return SimpleNamespace(output=list(items), error=None, usage=SimpleNamespace(input_tokens=3, output_tokens=5))


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/responses"))


class FakeResponses:
    """Stand-in for `AsyncOpenAI.responses` that replays queued outcomes."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.outcomes: List[Any] = []
        self.gate: Optional[asyncio.Event] = None

    def queue(self, *outcomes: Any) -> None:
        self.outcomes.extend(outcomes)

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0) if self.outcomes else response_with(text_item("ok"))
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeOpenAI:
    def __init__(self) -> None:
        self.responses = FakeResponses()
        self.closed = False

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", chat_model="chat-model", image_model="image-model")


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def genai_client(fake_openai, settings) -> GenerativeServiceClient:
    return GenerativeServiceClient(fake_openai, settings)


@pytest.fixture
def store() -> SessionStore:
    return SessionStore("session-1", greeting="hi")


@pytest.fixture
def controller(store, genai_client) -> ModeController:
    return ModeController(store, genai_client)


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()
