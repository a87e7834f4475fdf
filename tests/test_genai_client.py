import base64
from types import SimpleNamespace

import httpx
import openai
import pytest

from conftest import connection_error, image_item, make_png, response_with, text_item
from models.session_models import GroundingReference, Message, Role
from services.genai.client import NO_ANALYSIS_TEXT, NO_CHAT_TEXT, GenerativeServiceClient
from services.genai.errors import NoImageProducedError, RemoteCallError
from utils.settings import Settings


async def test_converse_without_search_sends_no_tools(genai_client, fake_openai):
    fake_openai.responses.queue(response_with(text_item("Hi there!")))

    reply = await genai_client.converse([], "Hello", enable_search_grounding=False)

    assert reply.text == "Hi there!"
    assert reply.grounding_references == ()
    call = fake_openai.responses.calls[0]
    assert call["model"] == "chat-model"
    assert "tools" not in call
    assert call["input"] == [{"type": "message", "role": "user", "content": "Hello"}]


async def test_converse_maps_history_roles_in_order(genai_client, fake_openai):
    history = [Message(role=Role.USER, text="first"), Message(role=Role.MODEL, text="answer")]

    await genai_client.converse(history, "second")

    inputs = fake_openai.responses.calls[0]["input"]
    assert [(item["role"], item["content"]) for item in inputs] == [
        ("user", "first"),
        ("assistant", "answer"),
        ("user", "second"),
    ]


async def test_converse_with_search_returns_sources(genai_client, fake_openai):
    fake_openai.responses.queue(
        response_with(
            SimpleNamespace(type="web_search_call", status="completed"),
            text_item(
                "Expect light rain.",
                [("https://meteo.example/paris", "Meteo Paris"), ("https://news.example/weather", "News")],
            ),
        )
    )

    reply = await genai_client.converse([], "What's the weather in Paris?", enable_search_grounding=True)

    assert fake_openai.responses.calls[0]["tools"] == [{"type": "web_search"}]
    assert reply.grounding_references == (
        GroundingReference("https://meteo.example/paris", "Meteo Paris"),
        GroundingReference("https://news.example/weather", "News"),
    )


async def test_converse_substitutes_placeholder_for_missing_text(genai_client, fake_openai):
    fake_openai.responses.queue(response_with())
    reply = await genai_client.converse([], "Hello")
    assert reply.text == NO_CHAT_TEXT


async def test_converse_rejects_blank_message(genai_client, fake_openai):
    with pytest.raises(ValueError):
        await genai_client.converse([], "   ")
    assert fake_openai.responses.calls == []


async def test_transport_failure_becomes_remote_call_error(genai_client, fake_openai):
    fake_openai.responses.queue(connection_error())
    with pytest.raises(RemoteCallError):
        await genai_client.converse([], "Hello")


async def test_status_failure_becomes_remote_call_error(genai_client, fake_openai):
    request = httpx.Request("POST", "https://api.openai.com/v1/responses")
    response = httpx.Response(401, request=request)
    fake_openai.responses.queue(openai.AuthenticationError("Incorrect API key", response=response, body=None))
    with pytest.raises(RemoteCallError):
        await genai_client.analyze_image("describe", make_png(), "image/png")


async def test_malformed_response_becomes_remote_call_error(genai_client, fake_openai):
    fake_openai.responses.queue(SimpleNamespace(error=None))
    with pytest.raises(RemoteCallError):
        await genai_client.converse([], "Hello")


async def test_analyze_image_sends_inline_image_then_prompt(genai_client, fake_openai):
    png = make_png()
    fake_openai.responses.queue(response_with(text_item("A red square.")))

    text = await genai_client.analyze_image("What is this?", png, "image/png")

    assert text == "A red square."
    content = fake_openai.responses.calls[0]["input"][0]["content"]
    assert content[0]["type"] == "input_image"
    assert content[0]["image_url"] == "data:image/png;base64," + base64.b64encode(png).decode("utf-8")
    assert content[1] == {"type": "input_text", "text": "What is this?"}


async def test_analyze_image_falls_back_when_no_text(genai_client, fake_openai):
    fake_openai.responses.queue(response_with())
    assert await genai_client.analyze_image("describe", make_png(), "image/png") == NO_ANALYSIS_TEXT


async def test_analyze_image_requires_bytes(genai_client):
    with pytest.raises(ValueError):
        await genai_client.analyze_image("describe", b"", "image/png")


async def test_generate_image_returns_the_image_part_between_texts(genai_client, fake_openai):
    png = make_png("blue")
    fake_openai.responses.queue(
        response_with(text_item("Here is your bicycle."), image_item(png), text_item("Enjoy!"))
    )

    url = await genai_client.generate_image("a red bicycle")

    assert url == "data:image/png;base64," + base64.b64encode(png).decode("utf-8")
    call = fake_openai.responses.calls[0]
    assert call["model"] == "image-model"
    assert call["tools"] == [{"type": "image_generation", "size": "1024x1024"}]


async def test_generate_image_uses_configured_aspect_ratio(fake_openai):
    client = GenerativeServiceClient(fake_openai, Settings(aspect_ratio="3:2"))
    fake_openai.responses.queue(response_with(image_item(make_png())))
    await client.generate_image("landscape")
    assert fake_openai.responses.calls[0]["tools"][0]["size"] == "1536x1024"


async def test_generate_image_without_image_part_fails(genai_client, fake_openai):
    fake_openai.responses.queue(response_with(text_item("I can't draw that.")))
    with pytest.raises(NoImageProducedError):
        await genai_client.generate_image("a red bicycle")


async def test_generate_image_transport_failure(genai_client, fake_openai):
    fake_openai.responses.queue(connection_error())
    with pytest.raises(RemoteCallError):
        await genai_client.generate_image("a red bicycle")


def test_client_requires_openai_client(settings):
    with pytest.raises(ValueError):
        GenerativeServiceClient(None, settings)
