"""Keep one mode controller and state store per browser session."""

from __future__ import annotations

from typing import Dict
from uuid import uuid4

from services.genai.client import GenerativeServiceClient
from services.mode_controller import ModeController
from services.session_store import SessionStore


class SessionRegistry:
	"""Create, look up, and tear down sessions."""

	def __init__(self, client: GenerativeServiceClient, greeting: str = "") -> None:
		self.client = client
		self.greeting = greeting
		self._sessions: Dict[str, ModeController] = {}

	def create(self) -> ModeController:
		"""Create a new session starting in chat mode."""
		session_id = uuid4().hex
		controller = ModeController(SessionStore(session_id, greeting=self.greeting), self.client)
		self._sessions[session_id] = controller
		return controller

	def get(self, session_id: str) -> ModeController:
		"""Return a session or raise KeyError if missing."""
		controller = self._sessions.get(session_id)
		if controller is None:
			raise KeyError(f"Session {session_id} not found")
		return controller

	def close(self, session_id: str) -> ModeController:
		"""Close a session; results of calls still in flight are discarded."""
		controller = self._sessions.pop(session_id, None)
		if controller is None:
			raise KeyError(f"Session {session_id} not found")
		controller.store.close()
		return controller

	def __len__(self) -> int:
		return len(self._sessions)
