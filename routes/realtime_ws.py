"""WebSocket endpoint that pushes session state changes to the browser."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Tuple

from fastapi import APIRouter, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.session_registry import SessionRegistry

router = APIRouter()
LOGGER = logging.getLogger(__name__)

Event = Tuple[str, Dict[str, Any]]


def _require_session_registry(websocket: WebSocket) -> SessionRegistry:
	registry = getattr(websocket.app.state, "session_registry", None)
	if registry is None:
		raise HTTPException(status_code=500, detail="Session registry unavailable")
	return registry


async def _pump(websocket: WebSocket, queue: "asyncio.Queue[Event]") -> None:
	"""Forward queued store events until the session closes."""
	while True:
		event, payload = await queue.get()
		await websocket.send_text(json.dumps({"type": event, **payload}))
		if event == "session.closed":
			return


@router.websocket("/ws/{session_id}")
async def session_socket(websocket: WebSocket, session_id: str):
	"""Send a snapshot, then every store event, for one session."""
	await websocket.accept()
	registry = _require_session_registry(websocket)
	try:
		controller = registry.get(session_id)
	except KeyError:
		await websocket.send_text(json.dumps({"type": "error", "detail": "Session not found"}))
		await websocket.close()
		return

	queue: "asyncio.Queue[Event]" = asyncio.Queue()
	unsubscribe = controller.store.subscribe(lambda event, payload: queue.put_nowait((event, payload)))
	await websocket.send_text(json.dumps({"type": "state.snapshot", "state": controller.snapshot()}))
	sender = asyncio.create_task(_pump(websocket, queue))
	receiver = asyncio.create_task(_drain(websocket))
	try:
		await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
	finally:
		unsubscribe()
		for task in (sender, receiver):
			task.cancel()
		for result in await asyncio.gather(sender, receiver, return_exceptions=True):
			if isinstance(result, Exception):
				LOGGER.warning("Session %s socket task failed: %r", session_id, result)
	try:
		await websocket.close()
	except Exception:
		# Client already gone; nothing left to close.
		LOGGER.debug("Session %s socket already closed", session_id, exc_info=True)


async def _drain(websocket: WebSocket) -> None:
	"""Consume inbound frames until the client disconnects; the socket is push-only."""
	while True:
		try:
			await websocket.receive_text()
		except WebSocketDisconnect:
			return
