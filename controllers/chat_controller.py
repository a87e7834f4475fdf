from fastapi import Request
from typing import Dict, Any

from controllers.session_controller import resolve_session


async def send_message(request: Request, session_id: str, text: str) -> Dict[str, Any]:
    """Submit a chat message and wait for the model's reply.

    Args:
        request: FastAPI Request (used to reach the session registry).
        session_id: Target session.
        text: The user's message. Blank text is ignored.

    Returns:
        A dict with `accepted` (False when the input was blank or a reply is
        still pending) and the session's chat `messages`.
    """
    controller = resolve_session(request, session_id)
    accepted = await controller.send_chat(text)
    return {
        "accepted": accepted,
        "messages": [msg.as_dict() for msg in controller.store.messages],
    }


async def set_search(request: Request, session_id: str, enabled: bool) -> Dict[str, Any]:
    """Turn web search grounding on or off for the session's chat."""
    controller = resolve_session(request, session_id)
    controller.set_search_enabled(enabled)
    return {"search_enabled": controller.store.search_enabled}
