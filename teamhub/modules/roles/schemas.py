from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from teamhub.config.permissions_config import Permission


class RoleCreate(BaseModel):
    name: str
    permissions: List[Permission] = []
    color: Optional[str] = None


class RoleUpdate(BaseModel):
    name: Optional[str] = None
    permissions: Optional[List[Permission]] = None
    color: Optional[str] = None


class RoleResponse(BaseModel):
    id: str
    name: str
    permissions: List[str] = []
    is_custom: bool = False
    is_default: bool = False
    color: Optional[str] = None
    is_deleted: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserPermissionsResponse(BaseModel):
    team_id: str
    user_id: str
    permissions: List[str]
