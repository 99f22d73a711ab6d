"""Shared fixtures: services wired to an in-memory gateway that can inject failures."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from teamhub.core.errors import PersistenceError
from teamhub.database.gateway import ROLES, TEAMS
from teamhub.database.memory_gateway import InMemoryGateway
from teamhub.modules.members.service import MemberInfoCache, MembershipLedger
from teamhub.modules.roles.reconciliation import OWNER_PERMISSION_VALUES
from teamhub.modules.roles.schemas import RoleResponse
from teamhub.modules.roles.service import RoleCatalog
from teamhub.modules.teams.service import TeamLifecycle


@dataclass
class FailureRule:
    operation: str
    collection: str
    when: Optional[Callable[[Dict[str, Any]], bool]] = None
    times: Optional[int] = None


class FlakyGateway(InMemoryGateway):
    """InMemoryGateway that records calls and raises PersistenceError on matching rules."""

    def __init__(self):
        super().__init__()
        self.rules: List[FailureRule] = []
        self.calls: List[Tuple[str, str, Any]] = []

    def fail(self, operation: str, collection: str, when=None, times=None) -> None:
        self.rules.append(FailureRule(operation, collection, when, times))

    def _check(self, operation: str, collection: str, payload: Any = None) -> None:
        self.calls.append((operation, collection, payload))
        for rule in self.rules:
            if rule.operation != operation or rule.collection != collection:
                continue
            if rule.when is not None and not rule.when(payload or {}):
                continue
            if rule.times is not None:
                if rule.times <= 0:
                    continue
                rule.times -= 1
            raise PersistenceError(f"injected {operation} failure on {collection}", operation=operation)

    def create(self, collection, parent_id, data):
        self._check("create", collection, data)
        return super().create(collection, parent_id, data)

    def get_by_id(self, collection, parent_id, entity_id):
        self._check("get_by_id", collection)
        return super().get_by_id(collection, parent_id, entity_id)

    def get_all(self, collection, parent_id):
        self._check("get_all", collection)
        return super().get_all(collection, parent_id)

    def update(self, collection, parent_id, entity_id, patch):
        self._check("update", collection, patch)
        return super().update(collection, parent_id, entity_id, patch)

    def delete(self, collection, parent_id, entity_id):
        self._check("delete", collection, {"id": entity_id})
        return super().delete(collection, parent_id, entity_id)

    def operations(self, operation: str, collection: str) -> List[Any]:
        return [payload for op, coll, payload in self.calls if op == operation and coll == collection]


@pytest.fixture
def gateway() -> FlakyGateway:
    return FlakyGateway()


@pytest.fixture
def ledger(gateway: FlakyGateway) -> MembershipLedger:
    return MembershipLedger(gateway)


@pytest.fixture
def catalog(gateway: FlakyGateway, ledger: MembershipLedger) -> RoleCatalog:
    return RoleCatalog(gateway, ledger)


@pytest.fixture
def member_info_cache() -> MemberInfoCache:
    return MemberInfoCache(ttl_sec=60, max_size=10)


@pytest.fixture
def lifecycle(gateway, catalog, ledger, member_info_cache) -> TeamLifecycle:
    return TeamLifecycle(gateway, catalog, ledger, member_info_cache)


@pytest.fixture
def acme(lifecycle: TeamLifecycle):
    """Team "Acme" owned by u1."""
    return lifecycle.create_team("Acme", "u1", description="Rocket skates")


def make_role(
    role_id: str,
    name: str,
    permissions: List[str],
    minutes: int = 0,
    is_default: bool = True,
    is_deleted: bool = False,
) -> RoleResponse:
    return RoleResponse(
        id=role_id,
        name=name,
        permissions=permissions,
        is_custom=not is_default,
        is_default=is_default,
        is_deleted=is_deleted,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    )


def insert_role(gateway: InMemoryGateway, team_id: str, name: str, permissions: List[str], is_default: bool = True) -> dict:
    """Write a role straight to storage, bypassing RoleCatalog (simulates corrupt state)."""
    return gateway.create(ROLES, team_id, {
        "name": name,
        "permissions": list(permissions),
        "is_custom": not is_default,
        "is_default": is_default,
        "is_deleted": False,
    })


def insert_bare_team(gateway: InMemoryGateway, owner_id: str = "u1", members=None) -> dict:
    """Team record with no roles or memberships."""
    members = list(members) if members is not None else [owner_id]
    return gateway.create(TEAMS, None, {
        "name": "Bare",
        "owner_id": owner_id,
        "is_active": True,
        "members": members,
        "member_count": len(members),
    })


FULL = list(OWNER_PERMISSION_VALUES)
