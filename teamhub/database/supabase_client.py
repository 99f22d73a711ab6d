from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from teamhub.config import settings
from teamhub.core.errors import PersistenceError
from teamhub.database.gateway import (
    Filter, MEMBERS, PROFILES, ROLES, TEAMS, SUBCOLLECTIONS, PersistenceGateway, require_parent
)
from teamhub.database.memory_gateway import InMemoryGateway


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Use in maintenance scripts."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_serialize(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


class SupabaseGateway:
    """
    Gateway over Supabase tables. Sub-collections are flat tables keyed by a
    team_id column; every client failure surfaces as PersistenceError.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.tables = {
            TEAMS: settings.teams_table,
            ROLES: settings.roles_table,
            MEMBERS: settings.members_table,
            PROFILES: settings.profiles_table,
        }

    def _query(self, collection: str, parent_id: Optional[str], query):
        if collection in SUBCOLLECTIONS:
            query = query.eq("team_id", parent_id)
        return query

    def _table(self, collection: str, parent_id: Optional[str]):
        require_parent(collection, parent_id)
        return self.supabase.table(self.tables[collection])

    def create(self, collection: str, parent_id: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            row = _serialize(data)
            if collection in SUBCOLLECTIONS:
                row["team_id"] = parent_id
            result = self._table(collection, parent_id).insert(row).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to create {collection} record: {e}", operation="create")
        if not result.data:
            raise PersistenceError(f"Failed to create {collection} record", operation="create")
        return result.data[0]

    def get_by_id(self, collection: str, parent_id: Optional[str], entity_id: str) -> Optional[Dict[str, Any]]:
        try:
            query = self._table(collection, parent_id).select("*").eq("id", entity_id)
            result = self._query(collection, parent_id, query).limit(1).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to read {collection}/{entity_id}: {e}", operation="get_by_id")
        return result.data[0] if result.data else None

    def get_all(self, collection: str, parent_id: Optional[str]) -> List[Dict[str, Any]]:
        return self.get_by_filter(collection, parent_id, [])

    def get_by_filter(self, collection: str, parent_id: Optional[str], filters: List[Filter]) -> List[Dict[str, Any]]:
        try:
            query = self._query(collection, parent_id, self._table(collection, parent_id).select("*"))
            for flt in filters:
                if flt.operator == "==":
                    query = query.eq(flt.field, _serialize(flt.value))
                elif flt.operator == "!=":
                    query = query.neq(flt.field, _serialize(flt.value))
                elif flt.operator == "in":
                    query = query.in_(flt.field, _serialize(list(flt.value)))
                elif flt.operator == "array-contains":
                    query = query.contains(flt.field, [_serialize(flt.value)])
            result = query.order("created_at").execute()
        except Exception as e:
            raise PersistenceError(f"Failed to query {collection}: {e}", operation="get_by_filter")
        return result.data or []

    def update(self, collection: str, parent_id: Optional[str], entity_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        try:
            row = _serialize(patch)
            row["updated_at"] = datetime.now(timezone.utc).isoformat()
            query = self._table(collection, parent_id).update(row).eq("id", entity_id)
            result = self._query(collection, parent_id, query).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to update {collection}/{entity_id}: {e}", operation="update")
        if not result.data:
            raise PersistenceError(f"{collection}/{entity_id} does not exist", operation="update")
        return result.data[0]

    def delete(self, collection: str, parent_id: Optional[str], entity_id: str) -> None:
        try:
            query = self._table(collection, parent_id).delete().eq("id", entity_id)
            self._query(collection, parent_id, query).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to delete {collection}/{entity_id}: {e}", operation="delete")

    def count(self, collection: str, parent_id: Optional[str]) -> int:
        try:
            query = self._table(collection, parent_id).select("id", count="exact")
            result = self._query(collection, parent_id, query).execute()
        except Exception as e:
            raise PersistenceError(f"Failed to count {collection}: {e}", operation="count")
        return result.count or 0


_memory_gateway = InMemoryGateway()


def get_gateway() -> PersistenceGateway:
    if settings.uses_memory_backend:
        return _memory_gateway
    return SupabaseGateway(get_supabase())


def get_service_gateway() -> PersistenceGateway:
    """Gateway for maintenance jobs (service-role client when configured)."""
    if settings.uses_memory_backend:
        return _memory_gateway
    return SupabaseGateway(SupabaseClient.get_service_client())
