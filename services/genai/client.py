"""Chat, image analysis, and image generation over OpenAI's Responses API."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

import openai
from openai import AsyncOpenAI

from models.session_models import GroundingReference, Message
from services.genai.errors import NoImageProducedError, RemoteCallError
from services.genai.media_inputs import (
    build_conversation_inputs,
    build_image_prompt_inputs,
    build_vision_inputs,
)
from services.genai.response_parser import (
    extract_grounding_references,
    extract_parts,
    extract_text,
    extract_usage,
    first_image_part,
)
from utils.settings import Settings

LOGGER = logging.getLogger(__name__)

NO_CHAT_TEXT = "No response text generated."
NO_ANALYSIS_TEXT = "Could not analyze the image."
WEB_SEARCH_TOOL: Dict[str, Any] = {"type": "web_search"}


@dataclass(frozen=True)
class ChatReply:
    """Normalized conversational answer."""

    text: str
    grounding_references: Tuple[GroundingReference, ...] = ()


def _require_text(value: str, name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValueError(f"{name} must not be empty.")
    return cleaned


class GenerativeServiceClient:
    """Isolate the rest of the application from the Responses API wire shape."""

    def __init__(self, client: AsyncOpenAI, settings: Settings) -> None:
        """Initialize the service with a shared OpenAI client and configuration."""
        if client is None:
            raise ValueError("OpenAI client must be provided.")
        self.client = client
        self.settings = settings

    async def converse(
        self,
        history: Sequence[Message],
        new_message: str,
        enable_search_grounding: bool = False,
    ) -> ChatReply:
        """Send one conversational turn and return the text plus cited web sources.

        Args:
            history: Prior turns in chronological order.
            new_message: The user's new message; must be non-blank.
            enable_search_grounding: Allow the model to consult the web search tool.

        Raises:
            ValueError: If `new_message` is blank.
            RemoteCallError: On transport, API, or parsing failure.
        """
        _require_text(new_message, "new_message")
        request: Dict[str, Any] = {
            "model": self.settings.chat_model,
            "input": build_conversation_inputs(history, new_message),
        }
        if enable_search_grounding:
            request["tools"] = [WEB_SEARCH_TOOL]

        response = await self._create_response("chat", request)
        try:
            text = extract_text(response)
            references = extract_grounding_references(response)
        except (AttributeError, TypeError, ValueError) as exc:
            LOGGER.error("Unparseable chat response: %r", response)
            raise RemoteCallError("Malformed chat response.") from exc
        return ChatReply(text=text or NO_CHAT_TEXT, grounding_references=tuple(references))

    async def analyze_image(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
        """Describe or answer a question about one image.

        Raises:
            ValueError: If the prompt is blank or the image is empty.
            RemoteCallError: On transport, API, or parsing failure.
        """
        _require_text(prompt, "prompt")
        if not image_bytes:
            raise ValueError("image_bytes must contain data.")
        request = {
            "model": self.settings.chat_model,
            "input": build_vision_inputs(prompt, image_bytes, mime_type),
        }
        response = await self._create_response("vision", request)
        try:
            text = extract_text(response)
        except (AttributeError, TypeError, ValueError) as exc:
            LOGGER.error("Unparseable vision response: %r", response)
            raise RemoteCallError("Malformed vision response.") from exc
        return text or NO_ANALYSIS_TEXT

    async def generate_image(self, prompt: str) -> str:
        """Generate one image and return it as a data URI.

        Every returned part is scanned in order and the first inline image wins;
        text commentary is ignored.

        Raises:
            ValueError: If the prompt is blank.
            NoImageProducedError: If no part carried image data.
            RemoteCallError: On transport, API, or parsing failure.
        """
        _require_text(prompt, "prompt")
        request = {
            "model": self.settings.image_model,
            "input": build_image_prompt_inputs(prompt),
            "tools": [{"type": "image_generation", "size": self.settings.image_size}],
            "tool_choice": {"type": "image_generation"},
        }
        response = await self._create_response("image", request)
        try:
            parts = extract_parts(response)
        except (AttributeError, TypeError, ValueError) as exc:
            LOGGER.error("Unparseable image response: %r", response)
            raise RemoteCallError("Malformed image generation response.") from exc

        image = first_image_part(parts)
        if image is None:
            LOGGER.error("No image data found in response (%d parts).", len(parts))
            raise NoImageProducedError("No image data found in response")
        return image.to_data_url()

    async def _create_response(self, surface: str, request: Dict[str, Any]) -> Any:
        """Issue one Responses API call, translating SDK failures."""
        start = time.time()
        try:
            response = await self.client.responses.create(**request)
        except openai.APIError as exc:
            LOGGER.error("Error during OpenAI Responses API call (%s): %s", surface, exc)
            raise RemoteCallError(str(exc)) from exc
        LOGGER.debug(
            "%s response in %.2fs, usage=%s", surface, time.time() - start, extract_usage(response)
        )
        return response
