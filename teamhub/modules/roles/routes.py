from fastapi import APIRouter, Depends
from typing import Dict, List

from teamhub.core.dependencies import get_current_user_id, get_role_catalog, require_team_member
from teamhub.modules.roles.schemas import RoleCreate, RoleResponse, RoleUpdate
from teamhub.modules.roles.service import RoleCatalog

router = APIRouter(prefix="/teams/{team_id}/roles", tags=["roles"])


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    team_id: str,
    custom_only: bool = False,
    user_data: Dict = Depends(require_team_member),
    service: RoleCatalog = Depends(get_role_catalog)
):
    """List the team's roles (only if user is a member)"""
    if custom_only:
        return service.list_custom_roles(team_id)
    return service.list_roles(team_id)


@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    team_id: str,
    role_data: RoleCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: RoleCatalog = Depends(get_role_catalog)
):
    """Create a custom role (no role-management permission required)"""
    return service.create_custom_role(
        team_id, role_data.name, role_data.permissions, role_data.color, created_by=user_data["id"]
    )


@router.post("/repair", status_code=204)
async def repair_default_roles(
    team_id: str,
    user_data: Dict = Depends(require_team_member),
    service: RoleCatalog = Depends(get_role_catalog)
):
    """Create missing default roles and retire duplicates"""
    service.bootstrap_default_roles(team_id)
    return None


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    team_id: str,
    role_id: str,
    user_data: Dict = Depends(require_team_member),
    service: RoleCatalog = Depends(get_role_catalog)
):
    """Get role by ID (only if user is a member)"""
    return service.get_role(team_id, role_id)


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    team_id: str,
    role_id: str,
    role_data: RoleUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: RoleCatalog = Depends(get_role_catalog)
):
    """Update a custom role (any team member)"""
    return service.update_role(team_id, role_id, role_data, user_data["id"])


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    team_id: str,
    role_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: RoleCatalog = Depends(get_role_catalog)
):
    """Delete a custom role that no member is bound to (any team member)"""
    service.delete_role(team_id, role_id, user_data["id"])
    return None
