
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from controllers.image_controller import (
	clear_selection,
	dismiss_notice,
	download_image,
	generate_image,
	get_thumbnail,
	select_image,
)

router = APIRouter(prefix="/sessions/{session_id}")


class GenerateRequest(BaseModel):
	prompt: str = ""


class SelectRequest(BaseModel):
	image_id: str


@router.post("/images")
async def post_image(request: Request, session_id: str, payload: GenerateRequest):
	"""Generate an image from a text prompt."""
	try:
		return await generate_image(request, session_id, payload.prompt)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.put("/images/selection")
async def put_image_selection(request: Request, session_id: str, payload: SelectRequest):
	try:
		return await select_image(request, session_id, payload.image_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/images/selection")
async def delete_image_selection(request: Request, session_id: str):
	try:
		return await clear_selection(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/notice")
async def delete_notice(request: Request, session_id: str):
	try:
		return await dismiss_notice(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/images/{image_id}/thumbnail")
async def get_image_thumbnail(request: Request, session_id: str, image_id: str):
	"""Return the PNG thumbnail bytes for the specified image id."""
	try:
		return await get_thumbnail(request, session_id, image_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/images/{image_id}/download")
async def get_image_download(request: Request, session_id: str, image_id: str):
	"""Return the full image as a file attachment."""
	try:
		return await download_image(request, session_id, image_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
