from fastapi import Request, UploadFile, HTTPException
from typing import Dict, Any

from controllers.session_controller import resolve_session
from utils.media_validation import FileReadError, read_upload_bytes


async def upload_image(request: Request, session_id: str, file: UploadFile) -> Dict[str, Any]:
    """Make an uploaded picture the session's vision preview.

    Args:
        request: FastAPI Request (used to reach the session registry).
        session_id: Target session.
        file: Uploaded image, either the raw file or a base64 data URL body.

    Returns:
        The vision slice of the session state.

    Raises:
        HTTPException(400) if the file cannot be read as a supported image;
        the existing preview is left untouched in that case.
    """
    controller = resolve_session(request, session_id)
    raw = await read_upload_bytes(file)
    try:
        controller.load_vision_image(raw, file.content_type, file.filename)
    except FileReadError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return controller.snapshot()["vision"]


async def clear_image(request: Request, session_id: str) -> Dict[str, Any]:
    controller = resolve_session(request, session_id)
    controller.clear_vision()
    return controller.snapshot()["vision"]


async def analyze(request: Request, session_id: str, prompt: str) -> Dict[str, Any]:
    """Ask the model about the current preview and return the analysis."""
    controller = resolve_session(request, session_id)
    accepted = await controller.analyze_image(prompt)
    return {"accepted": accepted, **controller.snapshot()["vision"]}
