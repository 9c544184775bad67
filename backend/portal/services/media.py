from __future__ import annotations
import io
import re
from PIL import Image


ALLOWED_MIME = {"image/jpeg", "image/png"}
EXT_FOR_MIME = {"image/jpeg": "jpg", "image/png": "png"}

def sniff_mime(data: bytes) -> str | None:
    # Trust the bytes, not the client's content-type
    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.format == "JPEG":
                return "image/jpeg"
            elif img.format == "PNG":
                return "image/png"
            return None
    except Exception:
        return None

def validate_image(data: bytes, max_bytes: int) -> str:
    """Returns the detected mime type or raises ValueError."""
    if not data:
        raise ValueError("Empty file")
    if len(data) > max_bytes:
        raise ValueError(f"File too large (max {max_bytes // (1024 * 1024)} MB)")
    mime = sniff_mime(data)
    if mime not in ALLOWED_MIME:
        raise ValueError("Unsupported image type")
    return mime

def ext_for_mime(mime: str) -> str:
    return EXT_FOR_MIME.get(mime, "bin")

def safe_filename(name: str | None, fallback: str = "upload") -> str:
    base = (name or "").rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    base = re.sub(r"[^A-Za-z0-9._-]+", "_", base).strip("._")
    return base[:100] or fallback
