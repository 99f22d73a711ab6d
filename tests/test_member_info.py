"""Tests for member display info and its cache."""

import time

from teamhub.database.gateway import PROFILES
from teamhub.modules.members.schemas import MemberWithRoleResponse
from teamhub.modules.members.service import MemberInfoCache, MemberInfoService


def _info(user_id):
    return MemberWithRoleResponse(user_id=user_id, email=f"{user_id}@example.com", role_name="Member")


class TestMemberInfoCache:
    def test_key_ignores_member_order(self):
        cache = MemberInfoCache()
        cache.put("t1", ["u2", "u1"], [_info("u1")])
        assert cache.get("t1", ["u1", "u2"]) == [_info("u1")]

    def test_entries_expire(self, monkeypatch):
        cache = MemberInfoCache(ttl_sec=10)
        cache.put("t1", ["u1"], [_info("u1")])

        later = time.monotonic() + 11
        monkeypatch.setattr(time, "monotonic", lambda: later)

        assert cache.get("t1", ["u1"]) is None

    def test_invalidate_is_per_team(self):
        cache = MemberInfoCache()
        cache.put("t1", ["u1"], [_info("u1")])
        cache.put("t2", ["u1"], [_info("u1")])

        cache.invalidate("t1")

        assert cache.get("t1", ["u1"]) is None
        assert cache.get("t2", ["u1"]) is not None

    def test_full_cache_stops_accepting(self):
        cache = MemberInfoCache(max_size=1)
        cache.put("t1", ["u1"], [_info("u1")])
        cache.put("t2", ["u1"], [_info("u1")])
        assert cache.get("t2", ["u1"]) is None


class TestMemberInfoService:
    def test_assembles_profiles_and_role_names(self, gateway, lifecycle, ledger, member_info_cache, acme):
        lifecycle.join_team(acme.id, "u2")
        gateway.create(PROFILES, None, {"id": "u1", "email": "wile@acme.test", "full_name": "Wile E."})
        service = MemberInfoService(gateway, ledger, member_info_cache)

        members = service.get_members_with_info(acme.id, ["u1", "u2"])

        assert [(m.user_id, m.email, m.display_name, m.role_name) for m in members] == [
            ("u1", "wile@acme.test", "Wile E.", "Owner"),
            ("u2", "u2", None, "Member"),
        ]

    def test_second_read_is_served_from_cache(self, gateway, ledger, lifecycle, member_info_cache, acme):
        service = MemberInfoService(gateway, ledger, member_info_cache)
        service.get_members_with_info(acme.id, ["u1"])
        reads = len(gateway.calls)

        service.get_members_with_info(acme.id, ["u1"])

        assert len(gateway.calls) == reads

    def test_cached_answer_follows_requested_order(self, gateway, ledger, lifecycle, member_info_cache, acme):
        lifecycle.join_team(acme.id, "u2")
        service = MemberInfoService(gateway, ledger, member_info_cache)
        service.get_members_with_info(acme.id, ["u1", "u2"])
        reads = len(gateway.calls)

        members = service.get_members_with_info(acme.id, ["u2", "u1"])

        assert [m.user_id for m in members] == ["u2", "u1"]
        assert len(gateway.calls) == reads

    def test_no_members(self, gateway, ledger, member_info_cache):
        service = MemberInfoService(gateway, ledger, member_info_cache)
        assert service.get_members_with_info("t1", []) == []
