"""
Permissions and Default Roles Configuration
This config defines the team permission vocabulary and the two system roles
every team carries. The Owner permission list is the canonical maximal set:
read paths correct any stored Owner role back to it.
"""

from enum import Enum
from typing import List


class Permission(str, Enum):
    CREATE_TASK = "CREATE_TASK"
    EDIT_TASK = "EDIT_TASK"
    DELETE_TASK = "DELETE_TASK"
    ASSIGN_TASK = "ASSIGN_TASK"
    CREATE_REPOSITORY = "CREATE_REPOSITORY"
    EDIT_REPOSITORY = "EDIT_REPOSITORY"
    DELETE_REPOSITORY = "DELETE_REPOSITORY"
    MANAGE_ROLES = "MANAGE_ROLES"
    MANAGE_MEMBERS = "MANAGE_MEMBERS"
    INVITE_MEMBERS = "INVITE_MEMBERS"
    REMOVE_MEMBERS = "REMOVE_MEMBERS"
    EDIT_TEAM = "EDIT_TEAM"
    DELETE_TEAM = "DELETE_TEAM"
    VIEW_TEAM_ID = "VIEW_TEAM_ID"


# Default role names (matched exactly, together with is_default=True)
OWNER_ROLE_NAME = "Owner"
MEMBER_ROLE_NAME = "Member"

# Owner carries every permission, in declaration order
OWNER_PERMISSIONS: List[Permission] = list(Permission)

# Member is the empty baseline: read-only access to the team
MEMBER_PERMISSIONS: List[Permission] = []


def get_default_role_matrix():
    """
    Returns the definitions used to create a team's default roles
    Format: [
        {"name": "Owner", "permissions": ["CREATE_TASK", ...], "is_custom": False, "is_default": True},
        {"name": "Member", "permissions": [], "is_custom": False, "is_default": True},
    ]
    """
    return [
        {
            "name": OWNER_ROLE_NAME,
            "permissions": [p.value for p in OWNER_PERMISSIONS],
            "is_custom": False,
            "is_default": True,
        },
        {
            "name": MEMBER_ROLE_NAME,
            "permissions": [p.value for p in MEMBER_PERMISSIONS],
            "is_custom": False,
            "is_default": True,
        },
    ]


DEFAULT_ROLES = get_default_role_matrix()
