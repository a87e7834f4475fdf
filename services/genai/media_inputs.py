"""Utilities to build input payloads for the Responses API."""

import base64
from typing import Any, Dict, Iterable, List

from models.session_models import Message, Role

# Responses API role names keyed by chat role.
_API_ROLES = {Role.USER: "user", Role.MODEL: "assistant"}


def to_image_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Convert raw image bytes into a data URL suitable for vision input."""
    if not image_bytes:
        raise ValueError("Image bytes are required.")
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def build_history_inputs(history: Iterable[Message]) -> List[Dict[str, Any]]:
    """Map prior chat turns, oldest first, to Responses API message entries."""
    return [
        {"type": "message", "role": _API_ROLES[Role(msg.role)], "content": msg.text}
        for msg in history
    ]


def build_conversation_inputs(history: Iterable[Message], new_message: str) -> List[Dict[str, Any]]:
    """Append the new user turn after the mapped history."""
    inputs = build_history_inputs(history)
    inputs.append({"type": "message", "role": "user", "content": new_message})
    return inputs


def build_vision_inputs(prompt: str, image_bytes: bytes, mime_type: str) -> List[Dict[str, Any]]:
    """Build a single user message carrying one inline image and the prompt."""
    image_url = to_image_data_url(image_bytes, mime_type)
    return [
        {
            "type": "message",
            "role": "user",
            "content": [
                {"type": "input_image", "image_url": image_url, "detail": "auto"},
                {"type": "input_text", "text": prompt},
            ],
        }
    ]


def build_image_prompt_inputs(prompt: str) -> List[Dict[str, Any]]:
    return [{"type": "message", "role": "user", "content": [{"type": "input_text", "text": prompt}]}]
