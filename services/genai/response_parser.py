"""Helpers to normalize Responses API outputs."""

from __future__ import annotations

import base64
import binascii
from typing import Any, Dict, List, Optional

from models.response_parts import InlineImagePart, ResponsePart, TextPart
from models.session_models import GroundingReference


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read `name` from an SDK model or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def output_items(response: Any) -> List[Any]:
    """Return the output item list, raising ValueError for malformed responses."""
    if response is None:
        raise ValueError("Empty response returned by the generative service.")
    error = _field(response, "error")
    if error:
        message = _field(error, "message") or str(error)
        raise ValueError(f"Generative service reported an error: {message}")
    output = _field(response, "output")
    if output is None:
        raise ValueError("Response does not contain an output list.")
    if not isinstance(output, (list, tuple)):
        raise ValueError(f"Unexpected response output type: {type(output).__name__}")
    return list(output)


def _output_texts(response: Any) -> List[Any]:
    texts = []
    for item in output_items(response):
        if _field(item, "type") != "message":
            continue
        for content in _field(item, "content") or []:
            if _field(content, "type") == "output_text":
                texts.append(content)
    return texts


def extract_text(response: Any) -> str:
    """Concatenate every output_text entry of the response's messages."""
    text = "".join(_field(content, "text") or "" for content in _output_texts(response))
    if text:
        return text
    return _field(response, "output_text") or ""


def extract_grounding_references(response: Any) -> List[GroundingReference]:
    """Return cited web sources in the order they appear in the response."""
    references: List[GroundingReference] = []
    for content in _output_texts(response):
        for annotation in _field(content, "annotations") or []:
            if _field(annotation, "type") != "url_citation":
                continue
            uri = _field(annotation, "url")
            if not uri:
                continue
            references.append(GroundingReference(uri=uri, title=_field(annotation, "title") or uri))
    return references


def _image_mime_type(item: Any) -> str:
    output_format = (_field(item, "output_format") or "png").lower()
    if output_format == "jpg":
        output_format = "jpeg"
    return f"image/{output_format}"


def extract_parts(response: Any) -> List[ResponsePart]:
    """Flatten the heterogeneous output list into text and inline image parts.

    Raises:
        ValueError: If the response is malformed or an image payload is not valid base64.
    """
    parts: List[ResponsePart] = []
    for item in output_items(response):
        item_type = _field(item, "type")
        if item_type == "message":
            for content in _field(item, "content") or []:
                if _field(content, "type") == "output_text":
                    parts.append(TextPart(text=_field(content, "text") or ""))
        elif item_type == "image_generation_call":
            result = _field(item, "result")
            if not result:
                continue
            try:
                data = base64.b64decode(result, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ValueError("Image payload is not valid base64.") from exc
            parts.append(InlineImagePart(data=data, mime_type=_image_mime_type(item)))
    return parts


def first_image_part(parts: List[ResponsePart]) -> Optional[InlineImagePart]:
    """Return the first inline image part carrying data, if any."""
    for part in parts:
        if isinstance(part, InlineImagePart) and part.data:
            return part
    return None


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage if present."""
    usage = _field(response, "usage")
    return {
        "input_tokens": _field(usage, "input_tokens") if usage else None,
        "output_tokens": _field(usage, "output_tokens") if usage else None,
    }
