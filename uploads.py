"""
Upload storage for listing images and application documents
"""

import logging
import os
import random
import re
import time
from typing import Dict, Iterable, List, Tuple

from fastapi import UploadFile

import config
from config import Config
from errors import BadRequestError

logger = logging.getLogger(__name__)

DOCUMENT_TYPES = ["image/jpeg", "image/png", "image/jpg", "application/pdf"]


def _unique_suffix() -> str:
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"


def sanitize_filename(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", name or "file")


async def _read_limited(upload: UploadFile) -> bytes:
    content = await upload.read()
    if len(content) > Config.MAX_UPLOAD_SIZE:
        limit_mb = Config.MAX_UPLOAD_SIZE // (1024 * 1024)
        raise BadRequestError(f"File too large. Maximum size is {limit_mb}MB")
    return content


def _write(subdir: str, filename: str, content: bytes) -> str:
    directory = os.path.join(config.UPLOAD_DIR, subdir)
    os.makedirs(directory, exist_ok=True)
    with open(os.path.join(directory, filename), "wb") as f:
        f.write(content)
    return f"uploads/{subdir}/{filename}"


async def save_image(upload: UploadFile, field: str = "image") -> str:
    """Store an admin-uploaded listing image, returning its relative URL"""
    if not (upload.content_type or "").startswith("image/"):
        raise BadRequestError("Not an image! Please upload an image.")

    content = await _read_limited(upload)
    ext = os.path.splitext(upload.filename or "")[1]
    url = _write("images", f"{field}-{_unique_suffix()}{ext}", content)
    logger.info(f"🖼️ Image uploaded: {url}")
    return url


async def save_document(upload: UploadFile, field: str, doc_type: str) -> Dict[str, str]:
    """Store an application document, returning its {type, name, url} entry"""
    if upload.content_type not in DOCUMENT_TYPES:
        raise BadRequestError("Invalid file type. Only PDF, JPG, and PNG are allowed.")

    content = await _read_limited(upload)
    filename = f"{field}-{_unique_suffix()}-{sanitize_filename(upload.filename)}"
    url = _write("documents", filename, content)
    return {"type": doc_type, "name": upload.filename, "url": url}


async def save_documents(files: Dict[str, Tuple[str, Iterable[UploadFile]]]) -> List[Dict[str, str]]:
    """files maps form field -> (document type, uploads)"""
    documents = []
    for field, (doc_type, field_uploads) in files.items():
        for upload in field_uploads or []:
            if upload is not None and upload.filename:
                documents.append(await save_document(upload, field, doc_type))
    return documents
