import io
import os
import uuid
import logging
from datetime import datetime, timezone
from pathlib import Path
from fastapi import UploadFile, HTTPException
from PIL import Image, UnidentifiedImageError

import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

# R2 configuration
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID", "").strip()
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY", "").strip()
R2_ENDPOINT = os.getenv("R2_ENDPOINT", "").strip()
R2_BUCKET = os.getenv("R2_BUCKET", "fieldops-photos").strip()

_s3_client = None


def _get_s3():
    global _s3_client
    if _s3_client is None:
        if not all([R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_ENDPOINT]):
            raise RuntimeError(
                "R2 storage not configured. Set R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY, R2_ENDPOINT."
            )
        _s3_client = boto3.client(
            "s3",
            endpoint_url=R2_ENDPOINT,
            aws_access_key_id=R2_ACCESS_KEY_ID,
            aws_secret_access_key=R2_SECRET_ACCESS_KEY,
            config=Config(signature_version="s3v4"),
            region_name="auto",
        )
    return _s3_client


def set_client(client):
    """Swap the S3 client (tests pass a stub here)."""
    global _s3_client
    _s3_client = client


# Clock-in / clock-out / switch photos come from phone cameras
ALLOWED_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/jpg",   # some clients send this
    "image/webp",
    "image/heic",
    "image/heif",
}

EXTENSION_MIME = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}

PHOTO_KINDS = ("clock_in", "clock_out", "switch")

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB


def _verify_image(content: bytes, ext: str):
    # Pillow has no HEIC decoder out of the box
    if ext in (".heic", ".heif"):
        return
    try:
        Image.open(io.BytesIO(content)).verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise HTTPException(status_code=400, detail="Invalid image")


def save_photo(file: UploadFile, employee_id, kind: str) -> tuple[str, int]:
    """Upload a timesheet photo to R2. Returns (r2_key, size)."""
    if kind not in PHOTO_KINDS:
        raise HTTPException(status_code=400, detail=f"kind must be one of {', '.join(PHOTO_KINDS)}")

    original_name = Path(file.filename).name if file.filename else "photo.jpg"
    ext = Path(original_name).suffix.lower()
    content_type = (file.content_type or "").lower().strip()

    # MIME OR extension; browsers often send application/octet-stream
    mime_ok = bool(content_type) and (content_type in ALLOWED_MIME_TYPES)
    ext_ok = ext in EXTENSION_MIME
    if not mime_ok and not ext_ok:
        raise HTTPException(status_code=400, detail=f"File type not allowed: {file.content_type}")

    content = file.file.read()
    size = len(content)
    if size > MAX_FILE_SIZE:
        raise HTTPException(status_code=413, detail="File too large (max 10MB)")
    if size == 0:
        raise HTTPException(status_code=400, detail="Empty file")

    _verify_image(content, ext)

    if not mime_ok:
        content_type = EXTENSION_MIME.get(ext, "image/jpeg")
    if not ext_ok:
        ext = next((e for e, m in EXTENSION_MIME.items() if m == content_type), ".jpg")

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    r2_key = f"timesheets/{employee_id}/{kind}_{stamp}_{uuid.uuid4().hex[:8]}{ext}"

    try:
        s3 = _get_s3()
        s3.put_object(
            Bucket=R2_BUCKET,
            Key=r2_key,
            Body=content,
            ContentType=content_type,
        )
        logger.info(f"Uploaded photo to R2: {r2_key} ({size} bytes)")
    except Exception as e:
        logger.error(f"R2 upload failed: {e}")
        raise HTTPException(status_code=500, detail="File upload failed")

    return r2_key, size


def get_download_url(r2_key: str, expires_in: int = 3600) -> str:
    """Generate a presigned URL for viewing a photo."""
    try:
        s3 = _get_s3()
        return s3.generate_presigned_url(
            "get_object",
            Params={"Bucket": R2_BUCKET, "Key": r2_key},
            ExpiresIn=expires_in,
        )
    except Exception as e:
        logger.error(f"Failed to generate presigned URL for {r2_key}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate download link")
