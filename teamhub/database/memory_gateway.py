"""In-memory gateway for local development and tests."""

import copy
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from teamhub.core.errors import PersistenceError
from teamhub.database.gateway import Filter, require_parent


def _matches(entity: Dict[str, Any], flt: Filter) -> bool:
    value = entity.get(flt.field)
    if flt.operator == "==":
        return value == flt.value
    if flt.operator == "!=":
        return value != flt.value
    if flt.operator == "in":
        return value in flt.value
    if flt.operator == "array-contains":
        return isinstance(value, list) and flt.value in value
    return False


class InMemoryGateway:
    def __init__(self):
        self._collections: Dict[Tuple[str, Optional[str]], Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()
        self._last_timestamp: Optional[datetime] = None

    def _now(self) -> datetime:
        # Strictly increasing so creation order is always recoverable
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _bucket(self, collection: str, parent_id: Optional[str]) -> Dict[str, Dict[str, Any]]:
        require_parent(collection, parent_id)
        return self._collections.setdefault((collection, parent_id), {})

    def create(self, collection: str, parent_id: Optional[str], data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            bucket = self._bucket(collection, parent_id)
            now = self._now()
            entity = copy.deepcopy(data)
            entity.setdefault("id", str(uuid.uuid4()))
            entity["created_at"] = now
            entity["updated_at"] = now
            bucket[entity["id"]] = entity
            return copy.deepcopy(entity)

    def get_by_id(self, collection: str, parent_id: Optional[str], entity_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            entity = self._bucket(collection, parent_id).get(entity_id)
            return copy.deepcopy(entity) if entity is not None else None

    def get_all(self, collection: str, parent_id: Optional[str]) -> List[Dict[str, Any]]:
        with self._lock:
            entities = sorted(self._bucket(collection, parent_id).values(), key=lambda e: e["created_at"])
            return copy.deepcopy(entities)

    def get_by_filter(self, collection: str, parent_id: Optional[str], filters: List[Filter]) -> List[Dict[str, Any]]:
        return [e for e in self.get_all(collection, parent_id) if all(_matches(e, f) for f in filters)]

    def update(self, collection: str, parent_id: Optional[str], entity_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            bucket = self._bucket(collection, parent_id)
            entity = bucket.get(entity_id)
            if entity is None:
                raise PersistenceError(f"{collection}/{entity_id} does not exist", operation="update")
            entity.update(copy.deepcopy(patch))
            entity["updated_at"] = self._now()
            return copy.deepcopy(entity)

    def delete(self, collection: str, parent_id: Optional[str], entity_id: str) -> None:
        with self._lock:
            self._bucket(collection, parent_id).pop(entity_id, None)

    def count(self, collection: str, parent_id: Optional[str]) -> int:
        with self._lock:
            return len(self._bucket(collection, parent_id))
