from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime


class PermissionResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    category: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RoleRef(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class PermissionWithRolesResponse(PermissionResponse):
    roles: List[RoleRef] = []


class PermissionOverviewResponse(BaseModel):
    permissions: List[PermissionWithRolesResponse]
    categorized: Dict[str, List[PermissionWithRolesResponse]]


class EffectivePermissionsResponse(BaseModel):
    """Shape consumed by the UI permission cache"""
    permissions: Dict[str, bool]
    roles: List[RoleRef]
