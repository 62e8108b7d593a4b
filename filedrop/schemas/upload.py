from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UploadedFileInfo(_CamelModel):
    url: str
    file_id: str = Field(alias="fileId")
    original_name: str = Field(alias="originalName")
    relative_path: str | None = Field(None, alias="relativePath")
    size: int
    content_type: str = Field(alias="contentType")


class UploadResponse(_CamelModel):
    url: str
    file_id: str = Field(alias="fileId")
    size: int
    expires_at: str | None = Field(None, alias="expiresAt")
    is_directory: bool | None = Field(None, alias="isDirectory")
    files: list[UploadedFileInfo] | None = None


class DeleteResponse(_CamelModel):
    message: str
    file_id: str = Field(alias="fileId")
    deleted_count: int | None = Field(None, alias="deletedCount")
    failed_blobs: list[str] | None = Field(None, alias="failedBlobs")


class FileListItem(_CamelModel):
    file_id: str = Field(alias="fileId")
    group_id: str = Field(alias="groupId")
    original_name: str = Field(alias="originalName")
    relative_path: str | None = Field(None, alias="relativePath")
    size: int
    content_type: str | None = Field(None, alias="contentType")
    uploaded_at: str | None = Field(None, alias="uploadedAt")
    last_accessed_at: str | None = Field(None, alias="lastAccessedAt")
    access_count: int = Field(0, alias="accessCount")
    url: str
    is_directory_item: bool = Field(alias="isDirectoryItem")
    expires_at: str | None = Field(None, alias="expiresAt")
    remaining_time: str | None = Field(None, alias="remainingTime")


class FileListResponse(BaseModel):
    files: list[FileListItem]
