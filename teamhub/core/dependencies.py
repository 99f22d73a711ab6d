"""
Core dependencies for route protection and team permission checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client
from typing import Union
import logging

from teamhub.config import settings
from teamhub.config.permissions_config import Permission
from teamhub.database.gateway import PersistenceGateway
from teamhub.database.supabase_client import get_gateway, get_supabase
from teamhub.modules.auth.service import AuthService
from teamhub.modules.members.service import MemberInfoCache, MemberInfoService, MembershipLedger
from teamhub.modules.roles.service import RoleCatalog
from teamhub.modules.teams.service import TeamLifecycle

logger = logging.getLogger(__name__)

security = HTTPBearer()

# Shared across requests; TeamLifecycle invalidates it on membership writes
member_info_cache = MemberInfoCache(
    ttl_sec=settings.member_info_cache_ttl_sec,
    max_size=settings.member_info_cache_max_size,
)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_membership_ledger(gateway: PersistenceGateway = Depends(get_gateway)) -> MembershipLedger:
    return MembershipLedger(gateway)


def get_role_catalog(
    gateway: PersistenceGateway = Depends(get_gateway),
    ledger: MembershipLedger = Depends(get_membership_ledger)
) -> RoleCatalog:
    return RoleCatalog(gateway, ledger)


def get_team_lifecycle(
    gateway: PersistenceGateway = Depends(get_gateway),
    roles: RoleCatalog = Depends(get_role_catalog),
    ledger: MembershipLedger = Depends(get_membership_ledger)
) -> TeamLifecycle:
    return TeamLifecycle(gateway, roles, ledger, member_info_cache)


def get_member_info_service(
    gateway: PersistenceGateway = Depends(get_gateway),
    ledger: MembershipLedger = Depends(get_membership_ledger)
) -> MemberInfoService:
    return MemberInfoService(gateway, ledger, member_info_cache)


def check_team_member(team_id: str, user_data: dict, ledger: MembershipLedger) -> dict:
    """Check if user holds a membership record in the team"""
    if ledger.find_by_user(team_id, user_data["id"]) is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be a member of this team"
        )
    return user_data


def require_team_member(
    team_id: str,
    user_data: dict = Depends(get_current_user_id),
    ledger: MembershipLedger = Depends(get_membership_ledger)
) -> dict:
    """Dependency form of check_team_member for routes with a team_id path parameter"""
    return check_team_member(team_id, user_data, ledger)


def require_team_permission(required_permission: Union[Permission, str]):
    """Factory function to create a team permission check dependency"""
    required = required_permission.value if isinstance(required_permission, Permission) else required_permission

    def check_permission(
        team_id: str,
        user_data: dict = Depends(get_current_user_id),
        roles: RoleCatalog = Depends(get_role_catalog)
    ) -> dict:
        """Dependency to check if user has the required permission in the team"""
        if not roles.user_has_permission(user_data["id"], team_id, required):
            logger.info(f"User {user_data['id']} lacks {required} in team {team_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {required}"
            )
        return user_data
    return check_permission
