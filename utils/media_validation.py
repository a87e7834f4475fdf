"""Validation helpers for uploaded and generated images."""

import base64
import binascii
import io
from typing import Optional, Tuple

from fastapi import HTTPException, UploadFile
from PIL import Image, UnidentifiedImageError

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
}


class FileReadError(ValueError):
    """An uploaded file could not be decoded as a supported image."""


def parse_data_url(data_url: str) -> Tuple[bytes, str]:
    """Split a base64 data URL into raw bytes and its MIME type.

    Raises:
        ValueError: If the string is not a base64 data URL.
    """
    if not data_url.startswith("data:") or "," not in data_url:
        raise ValueError("Not a data URL.")
    header, encoded = data_url.split(",", 1)
    mime_type, _, encoding = header[len("data:"):].partition(";")
    if encoding != "base64":
        raise ValueError("Only base64 data URLs are supported.")
    try:
        return base64.b64decode(encoded, validate=True), mime_type or "application/octet-stream"
    except binascii.Error as exc:
        raise ValueError("Invalid base64 data provided") from exc


def detect_image_type(data: bytes) -> str:
    """Return the MIME type Pillow identifies for `data`.

    Raises:
        FileReadError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            image_format = img.format
    except Image.DecompressionBombError as exc:
        raise FileReadError("Image dimensions exceed the allowed pixel count.") from exc
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise FileReadError("File is not a readable image.") from exc
    # Multi-picture JPEGs from phones and cameras.
    if image_format == "MPO":
        image_format = "JPEG"
    return Image.MIME.get(image_format or "", f"image/{(image_format or 'unknown').lower()}")


def decode_image_upload(raw: bytes, content_type: Optional[str] = None) -> Tuple[bytes, str]:
    """Turn an upload body into raw image bytes and a MIME type.

    The body may be the file itself or a base64 data URL. The MIME type is taken
    from the decoded content, not from the client's declaration.

    Raises:
        FileReadError: If the body is empty, undecodable, or not a supported image.
    """
    if not raw:
        raise FileReadError("Uploaded file is empty.")

    data = raw
    if raw[:5] == b"data:":
        try:
            data, _ = parse_data_url(raw.decode("utf-8").strip())
        except (UnicodeDecodeError, ValueError) as exc:
            raise FileReadError("Uploaded data URL could not be decoded.") from exc

    mime_type = detect_image_type(data)
    if mime_type not in ALLOWED_IMAGE_TYPES:
        declared = (content_type or "unknown").split(";", 1)[0].strip()
        raise FileReadError(f"Unsupported image type: {mime_type} (declared {declared})")
    return data, mime_type


async def read_upload_bytes(upload: UploadFile) -> bytes:
    """Read an uploaded file, ensuring the upload is not empty."""
    if not upload.filename:
        raise HTTPException(status_code=400, detail="Image file must have a filename.")
    data = await upload.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded image file is empty.")
    return data
