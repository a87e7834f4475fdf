"""FastAPI routes for session lifecycle and mode switching."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.session_controller import close_session, get_session, set_mode, start_session
from models.session_models import AppMode

router = APIRouter(prefix="/sessions")


class ModePayload(BaseModel):
	mode: AppMode


@router.post("")
async def start_session_route(request: Request):
	try:
		return await start_session(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str):
	try:
		return await get_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def close_session_route(request: Request, session_id: str):
	try:
		return await close_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/{session_id}/mode")
async def set_mode_route(request: Request, session_id: str, payload: ModePayload):
	try:
		return await set_mode(request, session_id, payload.mode)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
