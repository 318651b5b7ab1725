from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime

class FileRecordBase(BaseModel):
    file_name: str
    file_type: str
    file_size: int

class FileRecordResponse(FileRecordBase):
    file_id: int
    user_id: str
    path: str
    is_deleted: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UploadResponse(BaseModel):
    message: str
    file: FileRecordResponse

class MessageResponse(BaseModel):
    message: str

class RenameRequest(BaseModel):
    new_file_name: str = Field(..., alias="newFileName")

    class Config:
        populate_by_name = True
