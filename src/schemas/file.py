"""Hosted file schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from uuid import UUID
from datetime import datetime


class FileMeta(BaseModel):
    """An artifact already written to disk, awaiting registration."""
    original_name: str = Field(..., min_length=1, max_length=512)
    stored_name: str = Field(..., min_length=1, max_length=512)
    size_bytes: int = Field(..., ge=0)
    content_type: str = Field(default="application/octet-stream")
    storage_path: str


class StorageSummary(BaseModel):
    used: float
    limit: float
    remaining: float
    total_files: int


class FileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    original_name: str
    stored_name: str
    size_bytes: int
    size_mb: float
    content_type: str
    public_url: str
    download_count: int
    is_public: bool
    created_at: datetime


class UploadResult(BaseModel):
    file: FileResponse
    storage: StorageSummary
    message: Optional[str] = None


class FileListResponse(BaseModel):
    files: list[FileResponse]
    count: int
