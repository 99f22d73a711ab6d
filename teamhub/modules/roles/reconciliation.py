"""
Pure helpers for default-role integrity.

A team must carry exactly one live default "Owner" and one live default
"Member" role. Non-transactional bootstraps can leave duplicates behind;
reconcile_default_roles decides which copy survives without touching storage:

- Owner: a copy whose permissions equal the canonical maximal set wins,
  otherwise the copy with the most permissions.
- Member: a copy with no permissions wins, otherwise the copy with the fewest.
- Remaining ties go to the earliest created copy.

canonicalize corrects an Owner role's permissions in memory; stored data may
lag behind because a caller is not always allowed to write the fix.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from teamhub.config.permissions_config import (
    MEMBER_PERMISSIONS, MEMBER_ROLE_NAME, OWNER_PERMISSIONS, OWNER_ROLE_NAME
)
from teamhub.modules.roles.schemas import RoleResponse

OWNER_PERMISSION_VALUES: List[str] = [p.value for p in OWNER_PERMISSIONS]
MEMBER_PERMISSION_VALUES: List[str] = [p.value for p in MEMBER_PERMISSIONS]


@dataclass
class RoleDiscard:
    role: RoleResponse
    replacement_id: str


@dataclass
class RoleReconciliation:
    owner: Optional[RoleResponse] = None
    member: Optional[RoleResponse] = None
    keep: List[RoleResponse] = field(default_factory=list)
    discard: List[RoleDiscard] = field(default_factory=list)

    @property
    def has_duplicates(self) -> bool:
        return bool(self.discard)


def is_default_role(role: RoleResponse, name: str) -> bool:
    return role.is_default and not role.is_deleted and role.name == name


def is_owner_role(role: RoleResponse) -> bool:
    return is_default_role(role, OWNER_ROLE_NAME)


def is_member_role(role: RoleResponse) -> bool:
    return is_default_role(role, MEMBER_ROLE_NAME)


def same_permissions(current: Sequence[str], required: Sequence[str]) -> bool:
    """Order-independent comparison."""
    return sorted(current) == sorted(required)


def select_canonical(candidates: List[RoleResponse], required: Sequence[str], prefer_largest: bool) -> Optional[RoleResponse]:
    if not candidates:
        return None

    def rank(role: RoleResponse):
        size = len(set(role.permissions))
        return (
            0 if same_permissions(role.permissions, required) else 1,
            -size if prefer_largest else size,
            role.created_at,
            role.id,
        )

    return min(candidates, key=rank)


def reconcile_default_roles(roles: List[RoleResponse]) -> RoleReconciliation:
    active = [r for r in roles if not r.is_deleted]
    owners = [r for r in active if is_owner_role(r)]
    members = [r for r in active if is_member_role(r)]

    owner = select_canonical(owners, OWNER_PERMISSION_VALUES, prefer_largest=True)
    member = select_canonical(members, MEMBER_PERMISSION_VALUES, prefer_largest=False)

    discard = [RoleDiscard(r, owner.id) for r in owners if r.id != owner.id]
    discard += [RoleDiscard(r, member.id) for r in members if r.id != member.id]
    discarded_ids = {d.role.id for d in discard}

    return RoleReconciliation(
        owner=owner,
        member=member,
        keep=[r for r in active if r.id not in discarded_ids],
        discard=discard,
    )


def canonicalize(role: RoleResponse) -> RoleResponse:
    if is_owner_role(role) and not same_permissions(role.permissions, OWNER_PERMISSION_VALUES):
        return role.model_copy(update={"permissions": list(OWNER_PERMISSION_VALUES)})
    return role
