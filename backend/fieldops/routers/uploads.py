"""Photo uploads for clock-in, clock-out and work order switches."""

from fastapi import APIRouter, Depends, File, Form, UploadFile

from fieldops.dependencies import get_current_user
from fieldops.models.user import User
from fieldops.services.file_storage import get_download_url, save_photo

router = APIRouter(prefix="/api/v1/uploads", tags=["Uploads"])


@router.post("/photo", status_code=201)
def upload_photo(
    file: UploadFile = File(...),
    kind: str = Form("clock_in"),
    user: User = Depends(get_current_user),
):
    key, size = save_photo(file, user.id, kind)
    return {"ok": True, "key": key, "url": get_download_url(key), "bytes": size}
