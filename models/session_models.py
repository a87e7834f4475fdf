"""Session domain models for chat, vision, and image generation."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple
from uuid import uuid4


def _new_id() -> str:
	return uuid4().hex


def _now_ms() -> int:
	return int(time.time() * 1000)


class AppMode(str, Enum):
	"""Interaction surfaces a session can be in."""

	CHAT = "CHAT"
	VISION = "VISION"
	IMAGE_GEN = "IMAGE_GEN"


class Role(str, Enum):
	USER = "user"
	MODEL = "model"


@dataclass(frozen=True)
class GroundingReference:
	"""Web source the model consulted for a search-augmented answer."""

	uri: str
	title: str

	def as_dict(self) -> Dict[str, str]:
		return {"uri": self.uri, "title": self.title}


@dataclass(frozen=True)
class Message:
	"""One chat entry. Failure entries carry `is_error=True`."""

	role: Role
	text: str
	grounding_references: Tuple[GroundingReference, ...] = ()
	is_error: bool = False
	id: str = field(default_factory=_new_id)
	timestamp: int = field(default_factory=_now_ms)

	def as_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"role": self.role.value,
			"text": self.text,
			"timestamp": self.timestamp,
			"grounding_references": [ref.as_dict() for ref in self.grounding_references],
			"is_error": self.is_error,
		}


@dataclass(frozen=True)
class GeneratedImage:
	"""Image synthesized from a prompt, stored as a data URI."""

	url: str
	prompt: str
	id: str = field(default_factory=_new_id)
	timestamp: int = field(default_factory=_now_ms)

	def as_dict(self) -> Dict[str, Any]:
		return {"id": self.id, "url": self.url, "prompt": self.prompt, "timestamp": self.timestamp}


@dataclass(frozen=True)
class UploadedImage:
	"""Decoded image the user picked for vision analysis."""

	data: bytes
	mime_type: str
	filename: str = "upload"

	def as_dict(self) -> Dict[str, Any]:
		return {"filename": self.filename, "mime_type": self.mime_type, "size": len(self.data)}
