from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class UserRoleCreate(BaseModel):
    role_id: str


class UserRoleResponse(BaseModel):
    id: str
    user_id: str
    role_id: str
    assigned_by: Optional[str] = None
    assigned_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AssignedRoleResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_system: bool
    assigned_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
