import logging
from typing import Iterable, List, Optional, Union

from teamhub.config.permissions_config import DEFAULT_ROLES, Permission
from teamhub.core.errors import (
    ImmutableDefaultError, NotAMemberError, NotFoundError, PersistenceError, RoleInUseError, ValidationError
)
from teamhub.database.gateway import ROLES, PersistenceGateway, eq
from teamhub.modules.members.service import MembershipLedger
from teamhub.modules.roles.reconciliation import (
    OWNER_PERMISSION_VALUES, RoleReconciliation, canonicalize, is_owner_role, reconcile_default_roles
)
from teamhub.modules.roles.schemas import RoleResponse, RoleUpdate

logger = logging.getLogger(__name__)

PERMISSION_VALUES = {p.value for p in Permission}


def normalize_permissions(permissions: Optional[Iterable[Union[Permission, str]]]) -> List[str]:
    """Validate permission tokens and drop repeats, keeping first-seen order."""
    normalized: List[str] = []
    for permission in permissions or []:
        value = permission.value if isinstance(permission, Permission) else permission
        if value not in PERMISSION_VALUES:
            raise ValidationError(f"Unknown permission: {value}")
        if value not in normalized:
            normalized.append(value)
    return normalized


class RoleCatalog:
    def __init__(self, gateway: PersistenceGateway, ledger: MembershipLedger):
        self.gateway = gateway
        self.ledger = ledger

    # Reads

    def _load_roles(self, team_id: str) -> List[RoleResponse]:
        return [RoleResponse(**row) for row in self.gateway.get_all(ROLES, team_id)]

    def _load_default_roles(self, team_id: str) -> RoleReconciliation:
        rows = self.gateway.get_by_filter(ROLES, team_id, [eq("is_default", True)])
        return reconcile_default_roles([RoleResponse(**row) for row in rows])

    def _get_stored_role(self, team_id: str, role_id: str) -> RoleResponse:
        row = self.gateway.get_by_id(ROLES, team_id, role_id)
        if not row or row.get("is_deleted"):
            raise NotFoundError("Role not found")
        return RoleResponse(**row)

    def get_role(self, team_id: str, role_id: str) -> RoleResponse:
        """Get role by ID (Owner permissions corrected)"""
        return canonicalize(self._get_stored_role(team_id, role_id))

    def inspect_default_roles(self, team_id: str) -> RoleReconciliation:
        """Which default roles survive and which are duplicates, without writing anything"""
        return reconcile_default_roles(self._load_roles(team_id))

    def list_roles(self, team_id: str) -> List[RoleResponse]:
        """List live roles; duplicate default roles are repaired on the way."""
        plan = self.inspect_default_roles(team_id)
        if plan.has_duplicates:
            logger.warning(f"Team {team_id} has {len(plan.discard)} duplicate default role(s), repairing")
            try:
                self._discard_duplicates(team_id, plan)
            except PersistenceError as e:
                logger.warning(f"Default role repair for team {team_id} deferred: {e.message}")
        return [canonicalize(role) for role in plan.keep]

    def list_custom_roles(self, team_id: str) -> List[RoleResponse]:
        return [role for role in self.list_roles(team_id) if role.is_custom]

    # Custom role mutation (membership is the only gate)

    def create_custom_role(
        self,
        team_id: str,
        name: str,
        permissions: Optional[Iterable[Union[Permission, str]]] = None,
        color: Optional[str] = None,
        created_by: Optional[str] = None
    ) -> RoleResponse:
        """Create a custom role; any resolvable caller may do this."""
        if not team_id:
            raise ValidationError("Team ID is required")
        if not name or not name.strip():
            raise ValidationError("Role name cannot be empty")

        data = {
            "name": name.strip(),
            "permissions": normalize_permissions(permissions),
            "is_custom": True,
            "is_default": False,
            "is_deleted": False,
        }
        if color is not None:
            data["color"] = color

        row = self.gateway.create(ROLES, team_id, data)
        logger.info(f"Custom role '{data['name']}' ({row['id']}) created in team {team_id} by {created_by}")
        return RoleResponse(**row)

    def update_role(self, team_id: str, role_id: str, patch: RoleUpdate, acting_user_id: str) -> RoleResponse:
        changes = patch.model_dump(exclude_unset=True)
        if "name" in changes:
            if not changes["name"] or not changes["name"].strip():
                raise ValidationError("Role name cannot be empty")
            changes["name"] = changes["name"].strip()
        if "permissions" in changes:
            if changes["permissions"] is None:
                raise ValidationError("Permissions cannot be null; send [] to clear them")
            changes["permissions"] = normalize_permissions(changes["permissions"])

        role = self._get_stored_role(team_id, role_id)
        if role.is_default:
            raise ImmutableDefaultError("Default roles (Owner, Member) cannot be edited")
        if self.ledger.find_by_user(team_id, acting_user_id) is None:
            raise NotAMemberError("You are not a member of this team")

        if not changes:
            return role
        row = self.gateway.update(ROLES, team_id, role_id, changes)
        logger.info(f"Custom role {role_id} in team {team_id} updated by {acting_user_id}: {sorted(changes)}")
        return RoleResponse(**row)

    def delete_role(self, team_id: str, role_id: str, acting_user_id: str) -> None:
        role = self._get_stored_role(team_id, role_id)
        if role.is_default:
            raise ImmutableDefaultError("Default roles (Owner, Member) cannot be deleted")
        if self.ledger.find_by_user(team_id, acting_user_id) is None:
            raise NotAMemberError("You are not a member of this team")
        if self.ledger.find_by_role(team_id, role_id):
            raise RoleInUseError("Members are still assigned to this role; reassign them first")

        self.gateway.delete(ROLES, team_id, role_id)
        logger.info(f"Custom role {role_id} deleted from team {team_id} by {acting_user_id}")

    # Default roles

    def bootstrap_default_roles(self, team_id: str) -> None:
        """
        Make sure the team has exactly one live Owner and one live Member role.

        Safe to run any number of times: missing defaults are created,
        duplicates are retired after their memberships move to the surviving
        copy, and the survivors' permissions are reset to their canonical sets.
        """
        plan = self.inspect_default_roles(team_id)
        owner, member = plan.owner, plan.member

        if owner is None and member is None:
            logger.info(f"Creating default roles (Owner, Member) for team {team_id}")
        if owner is None:
            owner = self._create_default_role(team_id, DEFAULT_ROLES[0])
        if member is None:
            member = self._create_default_role(team_id, DEFAULT_ROLES[1])

        self._discard_duplicates(team_id, plan)
        self._sync_default_permissions(team_id, owner, member)

    def _create_default_role(self, team_id: str, definition: dict) -> RoleResponse:
        row = self.gateway.create(ROLES, team_id, dict(definition, is_deleted=False))
        logger.info(f"Default role '{definition['name']}' ({row['id']}) created for team {team_id}")
        return RoleResponse(**row)

    def _discard_duplicates(self, team_id: str, plan: RoleReconciliation) -> None:
        for discard in plan.discard:
            self.ledger.rebind_role(team_id, discard.role.id, discard.replacement_id)
            self._retire_role(team_id, discard.role)

    def _retire_role(self, team_id: str, role: RoleResponse) -> None:
        try:
            self.gateway.update(ROLES, team_id, role.id, {"is_deleted": True})
            logger.info(f"Duplicate default role '{role.name}' ({role.id}) soft-deleted in team {team_id}")
            return
        except PersistenceError as e:
            logger.warning(f"Soft delete of duplicate role {role.id} failed, hard deleting: {e.message}")
        try:
            self.gateway.delete(ROLES, team_id, role.id)
        except PersistenceError as e:
            logger.error(f"Could not retire duplicate role {role.id} in team {team_id}: {e.message}")

    def _sync_default_permissions(self, team_id: str, owner: RoleResponse, member: RoleResponse) -> None:
        if canonicalize(owner) is not owner:
            self._persist_owner_permissions(team_id, owner.id)
        if member.permissions:
            self.gateway.update(ROLES, team_id, member.id, {"permissions": []})
            logger.info(f"Member role {member.id} in team {team_id} reset to no permissions")

    def _persist_owner_permissions(self, team_id: str, role_id: str) -> None:
        # Reads already return the corrected set; the write may be refused by row-level security
        try:
            self.gateway.update(ROLES, team_id, role_id, {"permissions": list(OWNER_PERMISSION_VALUES)})
            logger.info(f"Owner role {role_id} in team {team_id} synchronized with canonical permissions")
        except PersistenceError as e:
            logger.debug(f"Owner role {role_id} permission sync not persisted: {e.message}")

    def resolve_owner_role(self, team_id: str) -> RoleResponse:
        owner = self._load_default_roles(team_id).owner
        if owner is None:
            raise NotFoundError("Owner role not found")
        corrected = canonicalize(owner)
        if corrected is not owner:
            self._persist_owner_permissions(team_id, owner.id)
        return corrected

    def resolve_member_role(self, team_id: str) -> RoleResponse:
        member = self._load_default_roles(team_id).member
        if member is None:
            raise NotFoundError("Member role not found")
        return member

    # Permission resolution

    def get_user_permissions(self, user_id: str, team_id: str) -> List[str]:
        membership = self.ledger.find_by_user(team_id, user_id)
        if membership is None:
            return []

        row = self.gateway.get_by_id(ROLES, team_id, membership.role_id)
        if not row or row.get("is_deleted"):
            logger.warning(f"Membership of {user_id} in team {team_id} points at missing role {membership.role_id}")
            return []

        role = RoleResponse(**row)
        if is_owner_role(role):
            try:
                return list(self.resolve_owner_role(team_id).permissions)
            except NotFoundError:
                return list(OWNER_PERMISSION_VALUES)
        return list(role.permissions)

    def user_has_permission(self, user_id: str, team_id: str, permission: Union[Permission, str]) -> bool:
        value = permission.value if isinstance(permission, Permission) else permission
        return value in self.get_user_permissions(user_id, team_id)
