"""Process configuration resolved once at startup."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict

DEFAULT_GREETING = (
    "Hello! I'm your Creative Spark assistant. I can help you brainstorm ideas, answer "
    "questions, or search the web for the latest info. How can I help today?"
)

# Image tool sizes keyed by aspect ratio.
ASPECT_RATIO_SIZES: Dict[str, str] = {
    "1:1": "1024x1024",
    "3:2": "1536x1024",
    "2:3": "1024x1536",
}


@dataclass(frozen=True)
class Settings:
    """Explicit configuration injected into the services.

    Attributes:
        api_key: OpenAI API key. Empty when unset; requests then fail remotely.
        chat_model: Model used for conversation and image analysis.
        image_model: Model hosting the `image_generation` tool.
        aspect_ratio: Aspect ratio requested for generated images.
        log_level: Root logging level name.
        greeting: Greeting shown above the chat history.
    """

    api_key: str = ""
    chat_model: str = "gpt-5"
    image_model: str = "gpt-4.1-mini"
    aspect_ratio: str = "1:1"
    log_level: str = "INFO"
    greeting: str = DEFAULT_GREETING

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (call after `load_dotenv`)."""
        aspect_ratio = os.getenv("IMAGE_ASPECT_RATIO", "1:1").strip()
        if aspect_ratio not in ASPECT_RATIO_SIZES:
            raise ValueError(
                f"Unsupported IMAGE_ASPECT_RATIO '{aspect_ratio}'. Supported: {', '.join(ASPECT_RATIO_SIZES)}"
            )
        return cls(
            api_key=os.getenv("OPENAI_API_KEY", ""),
            chat_model=os.getenv("OPENAI_MODEL", "gpt-5"),
            image_model=os.getenv("OPENAI_IMAGE_MODEL", "gpt-4.1-mini"),
            aspect_ratio=aspect_ratio,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            greeting=os.getenv("GREETING_MESSAGE", DEFAULT_GREETING),
        )

    @property
    def image_size(self) -> str:
        return ASPECT_RATIO_SIZES[self.aspect_ratio]
