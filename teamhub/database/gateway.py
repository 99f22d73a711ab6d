"""
Persistence gateway contract.

The team core talks to the document store only through this interface.
Top-level collections (teams, profiles) are addressed with parent_id=None;
per-team sub-collections (roles, members) require the owning team id.
Entities are plain dicts carrying "id", "created_at" and "updated_at",
all assigned by the gateway.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

TEAMS = "teams"
ROLES = "roles"
MEMBERS = "members"
PROFILES = "profiles"

SUBCOLLECTIONS = (ROLES, MEMBERS)

FILTER_OPERATORS = ("==", "!=", "in", "array-contains")


@dataclass(frozen=True)
class Filter:
    field: str
    operator: str
    value: Any

    def __post_init__(self):
        if self.operator not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.operator}")


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "==", value)


class PersistenceGateway(Protocol):
    def create(self, collection: str, parent_id: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def get_by_id(self, collection: str, parent_id: Optional[str], entity_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_all(self, collection: str, parent_id: Optional[str]) -> List[Dict[str, Any]]:
        ...

    def get_by_filter(self, collection: str, parent_id: Optional[str], filters: List[Filter]) -> List[Dict[str, Any]]:
        ...

    def update(self, collection: str, parent_id: Optional[str], entity_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def delete(self, collection: str, parent_id: Optional[str], entity_id: str) -> None:
        ...

    def count(self, collection: str, parent_id: Optional[str]) -> int:
        ...


def require_parent(collection: str, parent_id: Optional[str]) -> None:
    """Sub-collections are always scoped to a team."""
    if collection in SUBCOLLECTIONS and not parent_id:
        raise ValueError(f"Collection '{collection}' requires a parent team id")
