from fastapi import APIRouter, Depends
from typing import Dict, List

from teamhub.config.permissions_config import Permission
from teamhub.core.dependencies import (
    get_current_user_id, get_member_info_service, get_role_catalog, get_team_lifecycle,
    require_team_member, require_team_permission
)
from teamhub.modules.members.schemas import MembershipResponse, MemberWithRoleResponse, RoleAssign
from teamhub.modules.members.service import MemberInfoService
from teamhub.modules.roles.schemas import UserPermissionsResponse
from teamhub.modules.roles.service import RoleCatalog
from teamhub.modules.teams.schemas import TeamCreate, TeamResponse, TeamUpdate, UserRoleResponse
from teamhub.modules.teams.service import TeamLifecycle

router = APIRouter(prefix="/teams", tags=["teams"])


@router.post("", response_model=TeamResponse, status_code=201)
async def create_team(
    team_data: TeamCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """Create a new team; the caller becomes its owner"""
    return service.create_team(team_data.name, user_data["id"], team_data.description)


@router.get("", response_model=List[TeamResponse])
async def list_my_teams(
    user_data: Dict = Depends(get_current_user_id),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """List teams the current user belongs to"""
    return service.get_user_teams(user_data["id"])


@router.get("/{team_id}", response_model=TeamResponse)
async def get_team(
    team_id: str,
    user_data: Dict = Depends(require_team_member),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """Get team by ID (only if user is a member)"""
    return service.get_team(team_id)


@router.put("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: str,
    team_data: TeamUpdate,
    user_data: Dict = Depends(require_team_permission(Permission.EDIT_TEAM)),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """Update team details (requires EDIT_TEAM)"""
    return service.update_team(team_id, team_data)


@router.delete("/{team_id}", status_code=204)
async def delete_team(
    team_id: str,
    hard: bool = False,
    user_data: Dict = Depends(get_current_user_id),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """Deactivate the team, or delete it with hard=true (owner only)"""
    service.delete_team(team_id, user_data["id"], hard=hard)
    return None


@router.post("/{team_id}/join", response_model=TeamResponse)
async def join_team(
    team_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """Join a team by ID with the Member role"""
    return service.join_team(team_id, user_data["id"])


@router.post("/{team_id}/leave", response_model=TeamResponse)
async def leave_team(
    team_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """Leave a team"""
    return service.leave_team(team_id, user_data["id"])


@router.get("/{team_id}/members", response_model=List[MemberWithRoleResponse])
async def list_members(
    team_id: str,
    user_data: Dict = Depends(require_team_member),
    service: TeamLifecycle = Depends(get_team_lifecycle),
    info_service: MemberInfoService = Depends(get_member_info_service)
):
    """List team members with display info and role names (only if user is a member)"""
    return info_service.get_members_with_info(team_id, service.get_team_members(team_id))


@router.delete("/{team_id}/members/{user_id}", response_model=TeamResponse)
async def remove_member(
    team_id: str,
    user_id: str,
    current_user: Dict = Depends(require_team_permission(Permission.REMOVE_MEMBERS)),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """Remove a member from the team (requires REMOVE_MEMBERS)"""
    return service.remove_member(team_id, user_id, current_user["id"])


@router.get("/{team_id}/members/{user_id}/role", response_model=UserRoleResponse)
async def get_member_role(
    team_id: str,
    user_id: str,
    current_user: Dict = Depends(require_team_member),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """Get the role ID bound to a member"""
    return UserRoleResponse(team_id=team_id, user_id=user_id, role_id=service.get_user_role(team_id, user_id))


@router.put("/{team_id}/members/{user_id}/role", response_model=MembershipResponse)
async def assign_role(
    team_id: str,
    user_id: str,
    role_assign: RoleAssign,
    current_user: Dict = Depends(require_team_permission(Permission.MANAGE_MEMBERS)),
    service: TeamLifecycle = Depends(get_team_lifecycle)
):
    """Assign a role to a member (requires MANAGE_MEMBERS)"""
    return service.assign_role(team_id, user_id, role_assign.role_id, current_user["id"])


@router.get("/{team_id}/permissions/me", response_model=UserPermissionsResponse)
async def get_my_permissions(
    team_id: str,
    user_data: Dict = Depends(get_current_user_id),
    roles: RoleCatalog = Depends(get_role_catalog)
):
    """Effective permissions of the current user in the team (empty for non-members)"""
    permissions = roles.get_user_permissions(user_data["id"], team_id)
    return UserPermissionsResponse(team_id=team_id, user_id=user_data["id"], permissions=permissions)
