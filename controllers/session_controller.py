"""Session lifecycle and mode helpers."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from models.session_models import AppMode
from services.mode_controller import ModeController
from services.session_registry import SessionRegistry


def resolve_session(request: Request, session_id: str) -> ModeController:
	"""Return the session's controller or raise a 404."""
	registry: SessionRegistry = request.app.state.session_registry
	try:
		return registry.get(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc


async def start_session(request: Request) -> Dict[str, Any]:
	"""Create a new session and return its initial state."""
	registry: SessionRegistry = request.app.state.session_registry
	return registry.create().snapshot()


async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
	return resolve_session(request, session_id).snapshot()


async def close_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Tear down a session; pending results for it are dropped."""
	registry: SessionRegistry = request.app.state.session_registry
	try:
		registry.close(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail=str(exc)) from exc
	return {"session_id": session_id, "closed": True}


async def set_mode(request: Request, session_id: str, mode: AppMode) -> Dict[str, Any]:
	controller = resolve_session(request, session_id)
	controller.set_mode(mode)
	return {"session_id": session_id, "mode": controller.mode.value}
