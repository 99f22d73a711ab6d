from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class MembershipResponse(BaseModel):
    id: str
    user_id: str
    role_id: str
    added_by: Optional[str] = None
    added_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberWithRoleResponse(BaseModel):
    user_id: str
    email: str
    display_name: Optional[str] = None
    role_id: str = ""
    role_name: str


class RoleAssign(BaseModel):
    role_id: str
