import logging
import threading
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from teamhub.database.gateway import Filter, MEMBERS, PROFILES, ROLES, PersistenceGateway, eq
from teamhub.modules.members.schemas import MembershipResponse, MemberWithRoleResponse

logger = logging.getLogger(__name__)


class MembershipLedger:
    """Per-team user ↔ role bindings. Keeps one record per (team, user)."""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def _find_all(self, team_id: str, user_id: str) -> List[MembershipResponse]:
        rows = self.gateway.get_by_filter(MEMBERS, team_id, [eq("user_id", user_id)])
        return [MembershipResponse(**row) for row in rows]

    def add(self, team_id: str, user_id: str, role_id: str, added_by: str) -> MembershipResponse:
        """Create the membership; an existing record is rebound instead of duplicated."""
        existing = self._find_all(team_id, user_id)
        if existing:
            logger.warning(f"User {user_id} already has a membership in team {team_id}; rebinding it to role {role_id}")
            row = self.gateway.update(MEMBERS, team_id, existing[0].id, {"role_id": role_id})
            return MembershipResponse(**row)

        row = self.gateway.create(MEMBERS, team_id, {
            "user_id": user_id,
            "role_id": role_id,
            "added_by": added_by,
            "added_at": datetime.now(timezone.utc),
        })
        logger.info(f"Membership created for user {user_id} in team {team_id} (role {role_id}, added by {added_by})")
        return MembershipResponse(**row)

    def find_by_user(self, team_id: str, user_id: str) -> Optional[MembershipResponse]:
        matches = self._find_all(team_id, user_id)
        if len(matches) > 1:
            logger.warning(
                f"Data integrity: user {user_id} has {len(matches)} membership records in team {team_id}"
            )
        return matches[0] if matches else None

    def find_by_role(self, team_id: str, role_id: str) -> List[MembershipResponse]:
        rows = self.gateway.get_by_filter(MEMBERS, team_id, [eq("role_id", role_id)])
        return [MembershipResponse(**row) for row in rows]

    def list_members(self, team_id: str) -> List[MembershipResponse]:
        return [MembershipResponse(**row) for row in self.gateway.get_all(MEMBERS, team_id)]

    def reassign_role(self, team_id: str, user_id: str, new_role_id: str, assigned_by: Optional[str] = None) -> MembershipResponse:
        """Point the user's membership at new_role_id, creating the record if missing."""
        membership = self.find_by_user(team_id, user_id)
        if membership is None:
            return self.add(team_id, user_id, new_role_id, assigned_by or user_id)
        row = self.gateway.update(MEMBERS, team_id, membership.id, {"role_id": new_role_id})
        return MembershipResponse(**row)

    def rebind_role(self, team_id: str, from_role_id: str, to_role_id: str) -> int:
        """Move every membership bound to from_role_id onto to_role_id."""
        moved = 0
        for membership in self.find_by_role(team_id, from_role_id):
            self.gateway.update(MEMBERS, team_id, membership.id, {"role_id": to_role_id})
            moved += 1
        if moved:
            logger.info(f"Re-pointed {moved} membership(s) in team {team_id} from role {from_role_id} to {to_role_id}")
        return moved

    def remove(self, team_id: str, user_id: str) -> bool:
        """Delete the user's membership. A missing record is already consistent."""
        matches = self._find_all(team_id, user_id)
        for membership in matches:
            self.gateway.delete(MEMBERS, team_id, membership.id)
        return bool(matches)


class MemberInfoCache:
    """Process-wide TTL cache of member display info, invalidated per team on writes."""

    def __init__(self, ttl_sec: int = 120, max_size: int = 500):
        self.ttl_sec = ttl_sec
        self.max_size = max_size
        self._entries: Dict[Tuple[str, Tuple[str, ...]], Tuple[List[MemberWithRoleResponse], float]] = {}
        self._lock = threading.Lock()

    def get(self, team_id: str, member_ids: List[str]) -> Optional[List[MemberWithRoleResponse]]:
        key = (team_id, tuple(sorted(member_ids)))
        now = time.monotonic()
        with self._lock:
            if key in self._entries:
                data, expiry = self._entries[key]
                if now < expiry:
                    return data
                del self._entries[key]
        return None

    def put(self, team_id: str, member_ids: List[str], data: List[MemberWithRoleResponse]) -> None:
        with self._lock:
            if len(self._entries) < self.max_size:
                self._entries[(team_id, tuple(sorted(member_ids)))] = (data, time.monotonic() + self.ttl_sec)

    def invalidate(self, team_id: str) -> None:
        with self._lock:
            for key in [k for k in self._entries if k[0] == team_id]:
                del self._entries[key]


class MemberInfoService:
    def __init__(self, gateway: PersistenceGateway, ledger: MembershipLedger, cache: MemberInfoCache):
        self.gateway = gateway
        self.ledger = ledger
        self.cache = cache

    def get_members_with_info(self, team_id: str, member_ids: List[str]) -> List[MemberWithRoleResponse]:
        """Display info (email, name, role) for the given team members, in member_ids order."""
        if not member_ids:
            return []
        cached = self.cache.get(team_id, member_ids)
        if cached is not None:
            # Cache key is order-free; answer in the caller's order
            by_user = {m.user_id: m for m in cached}
            return [by_user[user_id] for user_id in member_ids]

        memberships = {m.user_id: m for m in self.ledger.list_members(team_id)}
        role_names = {r["id"]: r.get("name") for r in self.gateway.get_all(ROLES, team_id)}
        profiles = {
            p["id"]: p
            for p in self.gateway.get_by_filter(PROFILES, None, [Filter("id", "in", list(member_ids))])
        }

        members = []
        for user_id in member_ids:
            profile = profiles.get(user_id, {})
            membership = memberships.get(user_id)
            role_id = membership.role_id if membership else ""
            members.append(MemberWithRoleResponse(
                user_id=user_id,
                email=profile.get("email") or user_id,
                display_name=profile.get("full_name") or profile.get("display_name"),
                role_id=role_id,
                role_name=role_names.get(role_id) or "Member",
            ))

        self.cache.put(team_id, member_ids, members)
        return members
