from fastapi import Request, HTTPException
from fastapi.responses import Response
from typing import Dict, Any, Tuple

from controllers.session_controller import resolve_session
from models.session_models import GeneratedImage
from services.mode_controller import ModeController
from services.thumbnail_generator import ThumbnailGenerator
from utils.media_validation import parse_data_url


def _history_payload(controller: ModeController) -> Dict[str, Any]:
    state = controller.snapshot()
    return {
        "images": state["images"],
        "selected_image_id": state["selected_image_id"],
        "notice": state["notice"],
    }


def _find_image(controller: ModeController, image_id: str) -> GeneratedImage:
    try:
        return controller.store.get_image(image_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Image not found") from exc


def _image_bytes(image: GeneratedImage) -> Tuple[bytes, str]:
    try:
        return parse_data_url(image.url)
    except ValueError as exc:
        raise HTTPException(status_code=500, detail="Stored image payload is invalid") from exc


async def generate_image(request: Request, session_id: str, prompt: str) -> Dict[str, Any]:
    """Generate an image from a prompt and return the updated history.

    Args:
        request: FastAPI Request (used to reach the session registry).
        session_id: Target session.
        prompt: Text description of the image. Blank prompts are ignored.

    Returns:
        A dict containing `accepted`, the most-recent-first `images`, the
        `selected_image_id`, and any blocking `notice` from a failed attempt.
    """
    controller = resolve_session(request, session_id)
    accepted = await controller.generate_image(prompt)
    return {"accepted": accepted, **_history_payload(controller)}


async def select_image(request: Request, session_id: str, image_id: str) -> Dict[str, Any]:
    controller = resolve_session(request, session_id)
    _find_image(controller, image_id)
    controller.select_image(image_id)
    return _history_payload(controller)


async def clear_selection(request: Request, session_id: str) -> Dict[str, Any]:
    controller = resolve_session(request, session_id)
    controller.clear_selection()
    return _history_payload(controller)


async def dismiss_notice(request: Request, session_id: str) -> Dict[str, Any]:
    controller = resolve_session(request, session_id)
    controller.dismiss_notice()
    return _history_payload(controller)


async def get_thumbnail(request: Request, session_id: str, image_id: str) -> Response:
    """Controller to fetch a PNG thumbnail for a generated image.

    Returns:
        FastAPI `Response` with raw PNG bytes and `media_type` set to `image/png`.

    Raises:
        HTTPException(404) if the session or image is not found.
    """
    controller = resolve_session(request, session_id)
    data, _ = _image_bytes(_find_image(controller, image_id))
    try:
        thumbnail = ThumbnailGenerator().create_thumbnail(data)
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return Response(content=thumbnail, media_type="image/png")


async def download_image(request: Request, session_id: str, image_id: str) -> Response:
    """Return the full generated image as an attachment."""
    controller = resolve_session(request, session_id)
    image = _find_image(controller, image_id)
    data, mime_type = _image_bytes(image)
    extension = mime_type.split("/")[-1].replace("jpeg", "jpg")
    return Response(
        content=data,
        media_type=mime_type,
        headers={"Content-Disposition": f'attachment; filename="creative-spark-{image.id}.{extension}"'},
    )
