"""Tests for bearer-token identity resolution against a stubbed Supabase Auth."""

from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from teamhub.modules.auth.service import AuthService


class FakeAuth:
    def __init__(self, user=None, error=None):
        self.user = user
        self.error = error
        self.calls = 0

    def get_user(self, jwt):
        self.calls += 1
        if self.error:
            raise self.error
        return SimpleNamespace(user=self.user)


def _service(auth: FakeAuth) -> AuthService:
    return AuthService(SimpleNamespace(auth=auth))


class TestGetCurrentUser:
    def test_identity_is_cached_per_token(self):
        user = SimpleNamespace(id="u1", email="u1@example.com", user_metadata={"full_name": "Wile E."})
        auth = FakeAuth(user=user)
        service = _service(auth)

        first = service.get_current_user("token-cached")
        second = service.get_current_user("token-cached")

        assert first == second
        assert first["id"] == "u1"
        assert first["display_name"] == "Wile E."
        assert auth.calls == 1
        AuthService.forget_token("token-cached")

    def test_forget_token_forces_lookup(self):
        auth = FakeAuth(user=SimpleNamespace(id="u2", email=None, user_metadata=None))
        service = _service(auth)

        service.get_current_user("token-forget")
        AuthService.forget_token("token-forget")
        service.get_current_user("token-forget")

        assert auth.calls == 2
        AuthService.forget_token("token-forget")

    def test_missing_user_is_401(self):
        with pytest.raises(HTTPException) as exc:
            _service(FakeAuth(user=None)).get_current_user("token-empty")
        assert exc.value.status_code == 401

    def test_auth_error_is_401(self):
        with pytest.raises(HTTPException) as exc:
            _service(FakeAuth(error=RuntimeError("JWT expired"))).get_current_user("token-bad")
        assert exc.value.status_code == 401
