import logging
from typing import List, Optional

from teamhub.core.errors import (
    AlreadyMemberError, CannotRemoveOwnerError, MembershipCreationError, NotAMemberError, NotFoundError,
    NotMemberError, NotTeamOwnerError, PersistenceError, RoleSetupError, ValidationError
)
from teamhub.core.saga import Saga, SagaContext, SagaStep
from teamhub.database.gateway import MEMBERS, ROLES, TEAMS, Filter, PersistenceGateway
from teamhub.modules.members.schemas import MembershipResponse
from teamhub.modules.members.service import MemberInfoCache, MembershipLedger
from teamhub.modules.roles.schemas import RoleResponse
from teamhub.modules.roles.service import RoleCatalog
from teamhub.modules.teams.schemas import TeamResponse, TeamUpdate

logger = logging.getLogger(__name__)


class TeamLifecycle:
    """
    Team creation, join, leave, member removal and role assignment.

    Team records and their role/member sub-collections cannot be written
    atomically, so create_team and join_team run as sagas: a failure after the
    first write undoes the earlier writes instead of leaving a half-built team.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        roles: RoleCatalog,
        ledger: MembershipLedger,
        member_info_cache: Optional[MemberInfoCache] = None
    ):
        self.gateway = gateway
        self.roles = roles
        self.ledger = ledger
        self.member_info_cache = member_info_cache

    def _get_team(self, team_id: str) -> TeamResponse:
        if not team_id or not team_id.strip():
            raise ValidationError("Invalid team ID")
        row = self.gateway.get_by_id(TEAMS, None, team_id)
        if not row:
            raise NotFoundError("Team not found")
        return TeamResponse(**row)

    def _invalidate_member_info(self, team_id: str) -> None:
        if self.member_info_cache is None:
            return
        try:
            self.member_info_cache.invalidate(team_id)
        except Exception as e:
            logger.warning(f"Member info cache invalidation failed for team {team_id}: {e}")

    # Creation

    def create_team(self, name: str, owner_id: str, description: Optional[str] = None) -> TeamResponse:
        """Create a team with its default roles and the owner bound to the Owner role."""
        if not name or not name.strip():
            raise ValidationError("Team name cannot be empty")
        if not owner_id:
            raise ValidationError("Owner ID is required")

        def create_record(ctx: SagaContext) -> dict:
            return self.gateway.create(TEAMS, None, {
                "name": name.strip(),
                "description": description,
                "owner_id": owner_id,
                "is_active": True,
                "members": [owner_id],
                "member_count": 1,
            })

        def delete_record(ctx: SagaContext) -> None:
            self.gateway.delete(TEAMS, None, ctx["team"]["id"])
            logger.info(f"Rolled back team {ctx['team']['id']} after failed setup")

        def bootstrap_roles(ctx: SagaContext) -> None:
            self.roles.bootstrap_default_roles(ctx["team"]["id"])

        def resolve_owner_role(ctx: SagaContext) -> RoleResponse:
            try:
                return self.roles.resolve_owner_role(ctx["team"]["id"])
            except NotFoundError as e:
                raise RoleSetupError("Team roles could not be created") from e

        def add_owner(ctx: SagaContext) -> MembershipResponse:
            return self.ledger.add(ctx["team"]["id"], owner_id, ctx["owner_role"].id, owner_id)

        ctx = Saga("create_team", [
            SagaStep("team", create_record, delete_record),
            SagaStep("default_roles", bootstrap_roles),
            SagaStep("owner_role", resolve_owner_role),
            SagaStep("owner_membership", add_owner),
        ]).run()

        team = TeamResponse(**ctx["team"])
        logger.info(f"Team '{team.name}' ({team.id}) created by {owner_id}")
        return team

    # Membership changes

    def join_team(self, team_id: str, user_id: str) -> TeamResponse:
        """
        Add user_id to the team as a Member.

        The member-id list is written first: row-level security only lets
        listed members create or repair roles. Every later failure restores
        the original list.
        """
        if not team_id or not user_id:
            raise ValidationError("Invalid team or user ID")
        team = self._get_team(team_id)
        if user_id in team.members:
            raise AlreadyMemberError("You are already a member of this team")

        original_members = list(team.members)
        members = original_members + [user_id]

        def append_member(ctx: SagaContext) -> dict:
            return self.gateway.update(TEAMS, None, team_id, {"members": members})

        def restore_members(ctx: SagaContext) -> None:
            self.gateway.update(TEAMS, None, team_id, {"members": original_members})
            logger.info(f"Restored member list of team {team_id} after failed join of {user_id}")

        def resolve_member_role(ctx: SagaContext) -> RoleResponse:
            return self._ensure_member_role(team_id)

        def create_membership(ctx: SagaContext) -> MembershipResponse:
            try:
                return self.ledger.add(team_id, user_id, ctx["member_role"].id, user_id)
            except PersistenceError as e:
                raise MembershipCreationError(f"Membership record could not be created: {e.message}") from e

        def remove_membership(ctx: SagaContext) -> None:
            self.ledger.remove(team_id, user_id)

        def update_count(ctx: SagaContext) -> dict:
            return self.gateway.update(TEAMS, None, team_id, {"member_count": len(members)})

        ctx = Saga("join_team", [
            SagaStep("member_list", append_member, restore_members),
            SagaStep("member_role", resolve_member_role),
            SagaStep("membership", create_membership, remove_membership),
            SagaStep("team", update_count),
        ]).run()

        self._invalidate_member_info(team_id)
        logger.info(f"User {user_id} joined team {team_id} with the Member role")
        return TeamResponse(**ctx["team"])

    def _ensure_member_role(self, team_id: str) -> RoleResponse:
        try:
            return self.roles.resolve_member_role(team_id)
        except NotFoundError:
            logger.info(f"Member role missing in team {team_id}, bootstrapping default roles")
        try:
            self.roles.bootstrap_default_roles(team_id)
            return self.roles.resolve_member_role(team_id)
        except (NotFoundError, PersistenceError) as e:
            raise RoleSetupError("Team roles could not be set up. Please try again.") from e

    def _detach_member(self, team: TeamResponse, user_id: str) -> TeamResponse:
        if not self.ledger.remove(team.id, user_id):
            logger.info(f"No membership record for {user_id} in team {team.id}; nothing to delete")
        row = self.gateway.update(TEAMS, None, team.id, {
            "members": [m for m in team.members if m != user_id],
            "member_count": max(0, team.member_count - 1),
        })
        self._invalidate_member_info(team.id)
        return TeamResponse(**row)

    def leave_team(self, team_id: str, user_id: str) -> TeamResponse:
        if not team_id or not user_id:
            raise ValidationError("Invalid team or user ID")
        team = self._get_team(team_id)
        if user_id not in team.members:
            raise NotMemberError("You are not a member of this team")

        updated = self._detach_member(team, user_id)
        if user_id == team.owner_id:
            logger.warning(f"Owner {user_id} left team {team_id}; owner_id no longer resolves to a member")
        logger.info(f"User {user_id} left team {team_id}")
        return updated

    def remove_member(self, team_id: str, user_id: str, removed_by: str) -> TeamResponse:
        team = self._get_team(team_id)
        if user_id == team.owner_id:
            raise CannotRemoveOwnerError("The team owner cannot be removed")
        if user_id not in team.members:
            raise NotMemberError("User is not a member of this team")

        updated = self._detach_member(team, user_id)
        logger.info(f"User {user_id} removed from team {team_id} by {removed_by}")
        return updated

    def assign_role(self, team_id: str, user_id: str, role_id: str, assigned_by: str) -> MembershipResponse:
        team = self._get_team(team_id)
        self.roles.get_role(team_id, role_id)
        if user_id not in team.members:
            raise NotAMemberError("User is not a member of this team")

        membership = self.ledger.reassign_role(team_id, user_id, role_id, assigned_by)
        self._invalidate_member_info(team_id)
        logger.info(f"User {user_id} assigned role {role_id} in team {team_id} by {assigned_by}")
        return membership

    # Team records

    def get_team(self, team_id: str) -> TeamResponse:
        return self._get_team(team_id)

    def get_user_teams(self, user_id: str) -> List[TeamResponse]:
        if not user_id or not user_id.strip():
            raise ValidationError("Invalid user ID")
        rows = self.gateway.get_by_filter(TEAMS, None, [Filter("members", "array-contains", user_id)])
        return [TeamResponse(**row) for row in rows]

    def get_team_members(self, team_id: str) -> List[str]:
        return list(self._get_team(team_id).members)

    def get_user_role(self, team_id: str, user_id: str) -> str:
        membership = self.ledger.find_by_user(team_id, user_id)
        if membership is None:
            raise NotMemberError("User is not in this team")
        return membership.role_id

    def update_team(self, team_id: str, patch: TeamUpdate) -> TeamResponse:
        changes = patch.model_dump(exclude_unset=True)
        if "name" in changes:
            if not changes["name"] or not changes["name"].strip():
                raise ValidationError("Team name cannot be empty")
            changes["name"] = changes["name"].strip()
        if changes.get("is_active") is None:
            changes.pop("is_active", None)

        team = self._get_team(team_id)
        if not changes:
            return team
        return TeamResponse(**self.gateway.update(TEAMS, None, team_id, changes))

    def delete_team(self, team_id: str, acting_user_id: str, hard: bool = False) -> None:
        """Owner only. Soft delete deactivates; hard delete removes members, roles, then the team."""
        team = self._get_team(team_id)
        if acting_user_id != team.owner_id:
            raise NotTeamOwnerError("Only the team owner can delete the team")

        if not hard:
            self.gateway.update(TEAMS, None, team_id, {"is_active": False})
            logger.info(f"Team {team_id} deactivated by {acting_user_id}")
            return

        for membership in self.ledger.list_members(team_id):
            self.gateway.delete(MEMBERS, team_id, membership.id)
        for role in self.gateway.get_all(ROLES, team_id):
            self.gateway.delete(ROLES, team_id, role["id"])
        self.gateway.delete(TEAMS, None, team_id)
        self._invalidate_member_info(team_id)
        logger.info(f"Team {team_id} deleted by {acting_user_id}")
