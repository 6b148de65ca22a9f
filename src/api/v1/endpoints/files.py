"""File hosting endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse as FileDownload

from src.api.deps import get_current_user, get_file_service, get_storage
from src.app.config import settings
from src.schemas.file import FileListResponse, FileMeta, FileResponse, StorageSummary, UploadResult
from src.schemas.records import AccountRecord
from src.services.files import FileService
from src.services.storage.local import LocalStorage

router = APIRouter()


@router.post("", response_model=UploadResult, status_code=status.HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    current_user: AccountRecord = Depends(get_current_user),
    files: FileService = Depends(get_file_service),
    storage: LocalStorage = Depends(get_storage),
):
    """
    Upload a file to the account's hosting space.

    - Rejected if larger than the plan's single-file limit
    - Rejected if it does not fit in the remaining storage
    """
    original_name = file.filename or "file"
    stored_name, path, size = storage.save(current_user.id, original_name, file.file, settings.MAX_UPLOAD_BYTES)
    meta = FileMeta(
        original_name=original_name,
        stored_name=stored_name,
        size_bytes=size,
        content_type=file.content_type or "application/octet-stream",
        storage_path=str(path),
    )
    return files.upload_file(current_user.id, meta)


@router.get("", response_model=FileListResponse)
def list_files(
    current_user: AccountRecord = Depends(get_current_user),
    files: FileService = Depends(get_file_service),
):
    """All files of the current account, newest first."""
    records = files.list_files(current_user.id)
    return FileListResponse(
        files=[FileResponse.model_validate(r) for r in records],
        count=len(records),
    )


@router.get("/{file_id}", response_model=FileResponse)
def get_file(
    file_id: UUID,
    files: FileService = Depends(get_file_service),
):
    return FileResponse.model_validate(files.get_file(file_id))


@router.get("/{file_id}/download")
def download_file(
    file_id: UUID,
    files: FileService = Depends(get_file_service),
):
    """Public download link; counts every successful request."""
    record = files.record_download(file_id)
    return FileDownload(
        record.storage_path,
        media_type=record.content_type,
        filename=record.original_name,
    )


@router.delete("/{file_id}", response_model=StorageSummary)
def delete_file(
    file_id: UUID,
    current_user: AccountRecord = Depends(get_current_user),
    files: FileService = Depends(get_file_service),
):
    """Delete one of your files and free its storage."""
    return files.delete_file(current_user.id, file_id)
