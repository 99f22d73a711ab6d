import hashlib
import logging
import time
from typing import Any, Dict, Optional, Tuple

from fastapi import HTTPException
from supabase import Client

logger = logging.getLogger(__name__)

# token hash -> (identity, expiry); spares Supabase Auth a round trip per request
_IDENTITY_CACHE: Dict[str, Tuple[Dict[str, Any], float]] = {}
_IDENTITY_CACHE_TTL_SEC = 60
_IDENTITY_CACHE_MAX_SIZE = 500


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _cached_identity(key: str) -> Optional[Dict[str, Any]]:
    entry = _IDENTITY_CACHE.get(key)
    if entry is None:
        return None
    identity, expiry = entry
    if time.monotonic() >= expiry:
        _IDENTITY_CACHE.pop(key, None)
        return None
    return identity


class AuthService:
    """
    Maps a Supabase Auth bearer token to the caller's identity.

    Teams never authenticate anyone themselves: the user id returned here is
    the only input membership and permission checks take from the caller.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_current_user(self, token: str) -> Dict[str, Any]:
        key = _token_key(token)
        identity = _cached_identity(key)
        if identity is not None:
            return identity

        try:
            response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info(f"Token rejected by Supabase Auth: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user = response.user if response else None
        if not user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        metadata = user.user_metadata or {}
        identity = {
            "id": user.id,
            "email": user.email,
            "display_name": metadata.get("full_name") or metadata.get("name"),
            "user_metadata": metadata,
        }
        if len(_IDENTITY_CACHE) < _IDENTITY_CACHE_MAX_SIZE:
            _IDENTITY_CACHE[key] = (identity, time.monotonic() + _IDENTITY_CACHE_TTL_SEC)
        return identity

    @staticmethod
    def forget_token(token: str) -> None:
        """Drop a cached identity, e.g. after sign-out."""
        _IDENTITY_CACHE.pop(_token_key(token), None)
