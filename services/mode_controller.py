"""Route user actions to the generative client and the session state store."""

import logging
from typing import Any, Awaitable, Dict, Optional, TypeVar

from models.session_models import AppMode, GeneratedImage, Message, Role, UploadedImage
from services.genai.client import GenerativeServiceClient
from services.genai.errors import GenerativeServiceError
from services.session_store import SessionStore
from utils.media_validation import decode_image_upload

LOGGER = logging.getLogger(__name__)

CHAT_ERROR_TEXT = "Sorry, I encountered an error. Please check your connection and try again."
VISION_ERROR_TEXT = "Error analyzing image. Please try again."
IMAGE_ERROR_TEXT = "Failed to generate image. Please try again."

T = TypeVar("T")


class ModeController:
    """Own the active mode of one session and dispatch its actions.

    Each surface allows one outstanding remote call. A submission while that
    surface is busy, or with blank input, is ignored and the action returns False.
    Remote failures never escape: they become a failure entry in the relevant slice.

    The active mode only tells the browser which surface to show. Every surface
    keeps its own state and endpoints, so actions are accepted in any mode.
    """

    def __init__(self, store: SessionStore, client: GenerativeServiceClient) -> None:
        self.store = store
        self.client = client
        self.mode = AppMode.CHAT

    def set_mode(self, mode: AppMode) -> None:
        """Switch the active surface on explicit user selection."""
        mode = AppMode(mode)
        if mode == self.mode:
            return
        self.mode = mode
        self.store.publish("mode.changed", {"mode": mode.value})

    def snapshot(self) -> Dict[str, Any]:
        state = self.store.snapshot()
        state["mode"] = self.mode.value
        return state

    def _accepts(self, mode: AppMode, text: Optional[str]) -> bool:
        if self.store.closed or self.store.is_busy(mode):
            return False
        return bool((text or "").strip())

    async def _run(self, mode: AppMode, call: Awaitable[T]) -> T:
        """Await one remote call with the surface's busy flag raised."""
        self.store.set_busy(mode, True)
        try:
            return await call
        finally:
            if not self.store.closed:
                self.store.set_busy(mode, False)

    def _discarded(self, action: str) -> bool:
        if self.store.closed:
            LOGGER.info("Session %s closed during %s; discarding result", self.store.session_id, action)
            return True
        return False

    async def send_chat(self, text: str) -> bool:
        """Append the user's message, ask the model, and append its reply.

        Failure entries stay in the transcript but are not sent back as history.
        """
        if not self._accepts(AppMode.CHAT, text):
            return False

        history = [msg for msg in self.store.messages if not msg.is_error]
        self.store.append_message(Message(role=Role.USER, text=text))
        try:
            reply = await self._run(
                AppMode.CHAT,
                self.client.converse(history, text, self.store.search_enabled),
            )
        except GenerativeServiceError as exc:
            LOGGER.error("Chat request failed: %s", exc)
            answer = Message(role=Role.MODEL, text=CHAT_ERROR_TEXT, is_error=True)
        else:
            answer = Message(
                role=Role.MODEL,
                text=reply.text,
                grounding_references=reply.grounding_references,
            )

        if not self._discarded("chat"):
            self.store.append_message(answer)
        return True

    def toggle_search(self) -> bool:
        self.store.set_search_enabled(not self.store.search_enabled)
        return self.store.search_enabled

    def set_search_enabled(self, enabled: bool) -> None:
        self.store.set_search_enabled(enabled)

    def load_vision_image(self, raw: bytes, content_type: Optional[str], filename: Optional[str] = None) -> UploadedImage:
        """Decode an uploaded picture and make it the vision preview.

        Raises:
            FileReadError: If the upload is not a readable image. State is untouched.
        """
        data, mime_type = decode_image_upload(raw, content_type)
        image = UploadedImage(data=data, mime_type=mime_type, filename=filename or "upload")
        self.store.set_vision_image(image)
        return image

    def clear_vision(self) -> None:
        self.store.clear_vision()

    async def analyze_image(self, prompt: str) -> bool:
        """Ask the model about the current vision image."""
        image = self.store.vision_image
        if image is None or not self._accepts(AppMode.VISION, prompt):
            return False

        self.store.set_vision_result(None)
        try:
            text = await self._run(
                AppMode.VISION,
                self.client.analyze_image(prompt, image.data, image.mime_type),
            )
            is_error = False
        except GenerativeServiceError as exc:
            LOGGER.error("Vision request failed: %s", exc)
            text, is_error = VISION_ERROR_TEXT, True

        if self._discarded("vision"):
            return True
        if self.store.vision_image is not image:
            LOGGER.info("Vision image replaced during analysis; dropping stale result")
            return True
        self.store.set_vision_result(text, is_error=is_error)
        return True

    async def generate_image(self, prompt: str) -> bool:
        """Generate an image, prepend it to the history, and select it."""
        if not self._accepts(AppMode.IMAGE_GEN, prompt):
            return False

        self.store.dismiss_notice()
        try:
            url = await self._run(AppMode.IMAGE_GEN, self.client.generate_image(prompt))
        except GenerativeServiceError as exc:
            LOGGER.error("Image generation failed: %s", exc)
            if not self._discarded("image generation"):
                self.store.set_notice(IMAGE_ERROR_TEXT)
            return True

        if self._discarded("image generation"):
            return True
        image = GeneratedImage(url=url, prompt=prompt)
        self.store.append_image(image)
        self.store.select_image(image.id)
        return True

    def select_image(self, image_id: str) -> None:
        self.store.select_image(image_id)

    def clear_selection(self) -> None:
        self.store.clear_selection()

    def dismiss_notice(self) -> None:
        self.store.dismiss_notice()
