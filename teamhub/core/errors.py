"""
Domain errors for team membership and role management.

Every error carries a human-readable message, a short machine-readable kind
and the HTTP status the API layer answers with.
"""

from typing import Optional


class TeamHubError(Exception):
    status_code: int = 500
    kind: str = "error"

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class ValidationError(TeamHubError):
    status_code = 400
    kind = "validation"


class NotFoundError(TeamHubError):
    status_code = 404
    kind = "not_found"


class NotAMemberError(TeamHubError):
    """Acting user has no membership in the team."""
    status_code = 403
    kind = "not_a_member"


class NotMemberError(TeamHubError):
    """Target user is not in the team's member list."""
    status_code = 404
    kind = "not_member"


class NotTeamOwnerError(TeamHubError):
    status_code = 403
    kind = "not_team_owner"


class ImmutableDefaultError(TeamHubError):
    status_code = 403
    kind = "immutable_default_role"


class RoleInUseError(TeamHubError):
    status_code = 409
    kind = "role_in_use"


class AlreadyMemberError(TeamHubError):
    status_code = 409
    kind = "already_member"


class CannotRemoveOwnerError(TeamHubError):
    status_code = 403
    kind = "cannot_remove_owner"


class RoleSetupError(TeamHubError):
    status_code = 500
    kind = "role_setup_failed"


class MembershipCreationError(TeamHubError):
    status_code = 500
    kind = "membership_creation_failed"


class PersistenceError(TeamHubError):
    """Wraps any failure of the underlying document store."""
    status_code = 502
    kind = "persistence"

    def __init__(self, message: str, operation: Optional[str] = None, kind: Optional[str] = None):
        super().__init__(message, kind=kind)
        self.operation = operation
