"""Normalized fragments of a model response."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class TextPart:
    """Plain text emitted by the model."""

    text: str


@dataclass(frozen=True)
class InlineImagePart:
    """Raw image bytes returned inline with their MIME type."""

    data: bytes
    mime_type: str = "image/png"

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.mime_type};base64,{encoded}"


ResponsePart = Union[TextPart, InlineImagePart]
