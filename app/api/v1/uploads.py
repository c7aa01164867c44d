"""
Téléversement et lecture des fichiers (dossiers patients, comptes rendus).
"""

from pathlib import Path
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from app.core.config import settings
from app.core.deps import get_current_active_user
from app.core.logging import get_logger
from app.models.user import User

router = APIRouter()
logger = get_logger(__name__)


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR).resolve()


def file_kind(filename: str) -> tuple:
    """(dossier, extension) pour un nom de fichier autorisé."""
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension in settings.IMAGE_EXTENSIONS:
        return "images", extension
    if extension in settings.DOCUMENT_EXTENSIONS:
        return "documents", extension
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Unsupported file type. Allowed: "
        + ", ".join(sorted(settings.IMAGE_EXTENSIONS | settings.DOCUMENT_EXTENSIONS))
    )


@router.post("/", status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_active_user),
) -> Any:
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file")

    kind, extension = file_kind(file.filename)
    content = file.file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE_MB} MB"
        )

    directory = upload_root() / kind
    directory.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid4().hex}.{extension}"
    (directory / filename).write_bytes(content)

    logger.info(
        "Fichier téléversé",
        extra={"extra_data": {"kind": kind, "size": len(content), "user_id": current_user.id}},
    )
    return {
        "filename": filename,
        "url": f"{settings.API_V1_STR}/uploads/{kind}/{filename}",
        "content_type": file.content_type,
        "size": len(content),
    }


@router.get("/{file_path:path}")
def read_uploaded_file(
    file_path: str,
    current_user: User = Depends(get_current_active_user),
) -> FileResponse:
    root = upload_root()
    target = (root / file_path).resolve()
    if root != target and root not in target.parents:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file path")
    if not target.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return FileResponse(target)
