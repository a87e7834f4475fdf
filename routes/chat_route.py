from fastapi import APIRouter, Request, HTTPException
from pydantic import BaseModel

from controllers.chat_controller import send_message, set_search

router = APIRouter(prefix="/sessions/{session_id}/chat")


class ChatMessageRequest(BaseModel):
    text: str = ""


class SearchToggleRequest(BaseModel):
    enabled: bool


@router.post("/messages")
async def post_chat_message(request: Request, session_id: str, payload: ChatMessageRequest):
    """Send a chat message and return the conversation including the model's reply."""
    try:
        result = await send_message(request, session_id, payload.text)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return result


@router.put("/search")
async def put_chat_search(request: Request, session_id: str, payload: SearchToggleRequest):
    """Enable or disable web search grounding."""
    try:
        result = await set_search(request, session_id, payload.enabled)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return result
