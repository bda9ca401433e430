# athletehub/utils/uploads.py
import os
from typing import List

from fastapi import HTTPException, UploadFile

from athletehub import settings
from athletehub.utils.docs import new_id

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


def _ext(filename: str) -> str:
    return os.path.splitext(filename)[1].lower()


def validate_upload(filename: str, size_bytes: int) -> List[str]:
    errs: List[str] = []
    ext = _ext(filename)
    if ext not in IMAGE_EXTENSIONS:
        errs.append(f"Unsupported file type {ext or '(none)'}. Allowed: {', '.join(sorted(IMAGE_EXTENSIONS))}")
    if size_bytes <= 0:
        errs.append("File is empty.")
    elif size_bytes > settings.MAX_UPLOAD_BYTES:
        errs.append(f"File is larger than {settings.MAX_UPLOAD_BYTES // (1024 * 1024)} MB.")
    return errs


def save_upload(folder: str, filename: str, data: bytes) -> str:
    """
    Write ``data`` under ``UPLOAD_DIR/folder`` with a generated name and
    return the public path (``/uploads/<folder>/<name>``).
    """
    name = f"{new_id()}{_ext(filename)}"
    target_dir = os.path.join(settings.UPLOAD_DIR, folder)
    os.makedirs(target_dir, exist_ok=True)
    with open(os.path.join(target_dir, name), "wb") as buffer:
        buffer.write(data)
    return f"/uploads/{folder}/{name}"


async def read_image_upload(file: UploadFile) -> tuple:
    """Read an uploaded image and validate it; 400 with the first problem found."""
    filename = os.path.basename(file.filename or "")
    content = await file.read()
    errs = validate_upload(filename, len(content))
    if errs:
        raise HTTPException(status_code=400, detail=errs[0])
    return filename, content
