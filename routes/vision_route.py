from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.vision_controller import analyze, clear_image, upload_image

router = APIRouter(prefix="/sessions/{session_id}/vision")


class AnalyzeRequest(BaseModel):
    prompt: str = ""


@router.post("/image")
async def post_vision_image(request: Request, session_id: str, file: UploadFile = File(...)):
    """Upload the picture to analyze; replaces any previous preview and result."""
    try:
        result = await upload_image(request, session_id, file)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return result


@router.delete("/image")
async def delete_vision_image(request: Request, session_id: str):
    try:
        result = await clear_image(request, session_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return result


@router.post("/analyze")
async def post_vision_analyze(request: Request, session_id: str, payload: AnalyzeRequest):
    """Ask a question about the uploaded picture."""
    try:
        result = await analyze(request, session_id, payload.prompt)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
    return result
