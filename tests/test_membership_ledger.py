"""Tests for MembershipLedger."""

import logging

from teamhub.database.gateway import MEMBERS

TEAM = "t1"


class TestAdd:
    def test_add_and_find(self, ledger):
        created = ledger.add(TEAM, "u1", "role-owner", "u1")

        found = ledger.find_by_user(TEAM, "u1")
        assert found.id == created.id
        assert found.role_id == "role-owner"
        assert found.added_by == "u1"
        assert found.added_at is not None

    def test_existing_record_is_rebound_not_duplicated(self, ledger, gateway):
        first = ledger.add(TEAM, "u1", "role-a", "u1")
        second = ledger.add(TEAM, "u1", "role-b", "u1")

        assert second.id == first.id
        assert second.role_id == "role-b"
        assert gateway.count(MEMBERS, TEAM) == 1

    def test_teams_are_isolated(self, ledger):
        ledger.add(TEAM, "u1", "role-a", "u1")
        assert ledger.find_by_user("other-team", "u1") is None


class TestFind:
    def test_unknown_user(self, ledger):
        assert ledger.find_by_user(TEAM, "nobody") is None

    def test_duplicate_records_warn_and_return_first(self, ledger, gateway, caplog):
        first = gateway.create(MEMBERS, TEAM, {"user_id": "u1", "role_id": "role-a"})
        gateway.create(MEMBERS, TEAM, {"user_id": "u1", "role_id": "role-b"})

        with caplog.at_level(logging.WARNING, logger="teamhub.modules.members.service"):
            found = ledger.find_by_user(TEAM, "u1")

        assert found.id == first["id"]
        assert "Data integrity" in caplog.text

    def test_find_by_role(self, ledger):
        ledger.add(TEAM, "u1", "role-a", "u1")
        ledger.add(TEAM, "u2", "role-a", "u1")
        ledger.add(TEAM, "u3", "role-b", "u1")

        assert sorted(m.user_id for m in ledger.find_by_role(TEAM, "role-a")) == ["u1", "u2"]

    def test_list_members(self, ledger):
        ledger.add(TEAM, "u1", "role-a", "u1")
        ledger.add(TEAM, "u2", "role-b", "u1")
        assert [m.user_id for m in ledger.list_members(TEAM)] == ["u1", "u2"]


class TestReassign:
    def test_updates_existing_record(self, ledger):
        original = ledger.add(TEAM, "u1", "role-a", "u1")

        updated = ledger.reassign_role(TEAM, "u1", "role-b", "admin")

        assert updated.id == original.id
        assert updated.role_id == "role-b"

    def test_creates_missing_record(self, ledger):
        created = ledger.reassign_role(TEAM, "u5", "role-b", "admin")

        assert created.role_id == "role-b"
        assert created.added_by == "admin"

    def test_rebind_role_moves_every_binding(self, ledger):
        ledger.add(TEAM, "u1", "dup", "u1")
        ledger.add(TEAM, "u2", "dup", "u1")
        ledger.add(TEAM, "u3", "keep", "u1")

        moved = ledger.rebind_role(TEAM, "dup", "keep")

        assert moved == 2
        assert ledger.find_by_role(TEAM, "dup") == []
        assert len(ledger.find_by_role(TEAM, "keep")) == 3


class TestRemove:
    def test_remove_existing(self, ledger):
        ledger.add(TEAM, "u1", "role-a", "u1")
        assert ledger.remove(TEAM, "u1") is True
        assert ledger.find_by_user(TEAM, "u1") is None

    def test_remove_missing_is_tolerated(self, ledger):
        assert ledger.remove(TEAM, "ghost") is False

    def test_remove_clears_duplicates(self, ledger, gateway):
        gateway.create(MEMBERS, TEAM, {"user_id": "u1", "role_id": "role-a"})
        gateway.create(MEMBERS, TEAM, {"user_id": "u1", "role_id": "role-b"})

        ledger.remove(TEAM, "u1")

        assert gateway.count(MEMBERS, TEAM) == 0
