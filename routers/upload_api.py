from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

import uploads
from auth import require_admin
from errors import BadRequestError

router = APIRouter(prefix="/api/upload", tags=["Uploads"])


@router.post("", dependencies=[Depends(require_admin)])
async def upload_image(image: Optional[UploadFile] = File(None)):
    if image is None or not image.filename:
        raise BadRequestError("No file uploaded")

    url = await uploads.save_image(image)
    return {"success": True, "message": "File uploaded successfully", "url": url}
