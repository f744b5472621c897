# image input / output helpers shared by upload, crop, effects and analysis.
import base64
import binascii
import io
import os
import re
import uuid
from pathlib import Path
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

UPLOAD_DIR = Path(os.getenv("CARD_STUDIO_UPLOAD_DIR", "uploads"))

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
FETCH_TIMEOUT = 15

DATA_URL_RE = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


class ImageDecodeError(ValueError):
    pass


def decode_image_data(image_data: str) -> bytes:
    """
    Turn the ``imageData`` a client sends into raw bytes.

    Accepts a ``data:image/...;base64,`` URL, bare base64, or an http(s) URL
    which is fetched.
    """
    if not image_data or not isinstance(image_data, str):
        raise ImageDecodeError("No image data provided")

    image_data = image_data.strip()

    if image_data.startswith(("http://", "https://")):
        try:
            response = requests.get(image_data, timeout=FETCH_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImageDecodeError(f"Could not fetch image: {e}") from e
        return response.content

    payload = DATA_URL_RE.sub("", image_data)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError("Image data is not valid base64") from e


def load_image(raw: bytes) -> Image.Image:
    """Open image bytes with Pillow, failing early on anything undecodable."""
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError("Data is not a readable image") from e
    return image


def to_data_url(image: Image.Image, fmt: str = "PNG", quality: int = 95) -> str:
    fmt = fmt.upper()
    if fmt == "JPG":
        fmt = "JPEG"
    if fmt not in ("PNG", "JPEG"):
        raise ImageDecodeError(f"Unsupported output format '{fmt}'")

    buffer = io.BytesIO()
    if fmt == "JPEG":
        image.convert("RGB").save(buffer, format="JPEG", quality=quality)
        mime = "image/jpeg"
    else:
        image.save(buffer, format="PNG")
        mime = "image/png"
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def save_upload(raw: bytes, filename: Optional[str]) -> str:
    """Store an uploaded image under UPLOAD_DIR and return its public path."""
    extension = Path(filename or "").suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise ImageDecodeError(
            f"Unsupported file type '{extension or 'none'}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
    if len(raw) > MAX_UPLOAD_BYTES:
        raise ImageDecodeError("Image is larger than 10 MB")

    load_image(raw)

    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex}{extension}"
    (UPLOAD_DIR / stored_name).write_bytes(raw)
    return f"/uploads/{stored_name}"
