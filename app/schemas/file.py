from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from app.models.file import FileStatusEnum


class FileRejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=2000)


class FileResponse(BaseModel):
    id: str
    task_id: Optional[str] = None
    name: str
    status: FileStatusEnum
    uploaded_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
