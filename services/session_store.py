"""In-memory session state with change notifications."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from models.session_models import AppMode, GeneratedImage, Message, UploadedImage

LOGGER = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], None]


class SessionStore:
	"""Authoritative state for one session.

	Messages keep insertion order; generated images are kept most-recent-first.
	Every mutation notifies subscribers with an event name and a JSON-friendly payload.
	"""

	def __init__(self, session_id: str, greeting: str = "") -> None:
		self.session_id = session_id
		self.greeting = greeting
		self._messages: List[Message] = []
		self._images: List[GeneratedImage] = []
		self._message_ids: set = set()
		self._image_ids: Dict[str, GeneratedImage] = {}
		self.selected_image_id: Optional[str] = None
		self.search_enabled = False
		self.vision_image: Optional[UploadedImage] = None
		self.vision_result: Optional[str] = None
		self.vision_result_is_error = False
		self.notice: Optional[str] = None
		self.closed = False
		self._busy: Dict[AppMode, bool] = {mode: False for mode in AppMode}
		self._listeners: List[Listener] = []

	def subscribe(self, listener: Listener) -> Callable[[], None]:
		"""Register a listener and return a callable that removes it."""
		self._listeners.append(listener)

		def unsubscribe() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return unsubscribe

	def publish(self, event: str, payload: Dict[str, Any]) -> None:
		"""Deliver an event to every subscriber; listener errors are only logged."""
		for listener in list(self._listeners):
			try:
				listener(event, payload)
			except Exception:
				LOGGER.exception("Session %s listener failed on %s", self.session_id, event)

	@property
	def messages(self) -> List[Message]:
		return list(self._messages)

	def append_message(self, message: Message) -> None:
		"""Append a message to the end of the conversation."""
		if message.id in self._message_ids:
			raise ValueError(f"Duplicate message id {message.id}")
		self._messages.append(message)
		self._message_ids.add(message.id)
		self.publish("message.appended", {"message": message.as_dict()})

	def set_search_enabled(self, enabled: bool) -> None:
		self.search_enabled = bool(enabled)
		self.publish("search.changed", {"search_enabled": self.search_enabled})

	@property
	def images(self) -> List[GeneratedImage]:
		return list(self._images)

	@property
	def selected_image(self) -> Optional[GeneratedImage]:
		if self.selected_image_id is None:
			return None
		return self._image_ids[self.selected_image_id]

	def get_image(self, image_id: str) -> GeneratedImage:
		"""Return a history image or raise KeyError if missing."""
		image = self._image_ids.get(image_id)
		if image is None:
			raise KeyError(f"Image {image_id} not found")
		return image

	def append_image(self, image: GeneratedImage) -> None:
		"""Insert a generated image at the front of the history."""
		if image.id in self._image_ids:
			raise ValueError(f"Duplicate image id {image.id}")
		self._images.insert(0, image)
		self._image_ids[image.id] = image
		self.publish("image.appended", {"image": image.as_dict()})

	def select_image(self, image_id: str) -> None:
		"""Point the viewer at a history image. Reselecting is a no-op."""
		self.get_image(image_id)
		if self.selected_image_id == image_id:
			return
		self.selected_image_id = image_id
		self.publish("image.selected", {"image_id": image_id})

	def clear_selection(self) -> None:
		if self.selected_image_id is None:
			return
		self.selected_image_id = None
		self.publish("image.selected", {"image_id": None})

	def set_notice(self, text: str) -> None:
		self.notice = text
		self.publish("notice.changed", {"notice": text})

	def dismiss_notice(self) -> None:
		if self.notice is None:
			return
		self.notice = None
		self.publish("notice.changed", {"notice": None})

	def set_vision_image(self, image: UploadedImage) -> None:
		"""Replace the picture under analysis and drop any previous result."""
		self.vision_image = image
		self.vision_result = None
		self.vision_result_is_error = False
		self.publish("vision.changed", self._vision_payload())

	def clear_vision(self) -> None:
		self.vision_image = None
		self.vision_result = None
		self.vision_result_is_error = False
		self.publish("vision.changed", self._vision_payload())

	def set_vision_result(self, text: Optional[str], is_error: bool = False) -> None:
		self.vision_result = text
		self.vision_result_is_error = is_error
		self.publish("vision.changed", self._vision_payload())

	def _vision_payload(self) -> Dict[str, Any]:
		return {
			"image": self.vision_image.as_dict() if self.vision_image else None,
			"result": self.vision_result,
			"result_is_error": self.vision_result_is_error,
		}

	def is_busy(self, mode: AppMode) -> bool:
		return self._busy[mode]

	def set_busy(self, mode: AppMode, busy: bool) -> None:
		self._busy[mode] = busy
		self.publish("busy.changed", {"mode": mode.value, "busy": busy})

	def close(self) -> None:
		"""Mark the session torn down; in-flight results are discarded afterwards."""
		self.closed = True
		self.publish("session.closed", {"session_id": self.session_id})
		self._listeners.clear()

	def snapshot(self) -> Dict[str, Any]:
		"""Return the whole state as JSON-serializable data."""
		return {
			"session_id": self.session_id,
			"greeting": self.greeting,
			"messages": [msg.as_dict() for msg in self._messages],
			"images": [img.as_dict() for img in self._images],
			"selected_image_id": self.selected_image_id,
			"search_enabled": self.search_enabled,
			"vision": self._vision_payload(),
			"notice": self.notice,
			"busy": {mode.value: flag for mode, flag in self._busy.items()},
			"closed": self.closed,
		}
