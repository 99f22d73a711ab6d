"""Tests for the default-role repair script."""

import pytest

from teamhub.database.gateway import ROLES
from teamhub.scripts import repair_default_roles
from teamhub.scripts.repair_default_roles import repair_all
from tests.conftest import FULL, insert_bare_team, insert_role


class TestRepairAll:
    def test_repairs_only_broken_teams(self, gateway, lifecycle):
        healthy = lifecycle.create_team("Healthy", "u1")
        broken = insert_bare_team(gateway)
        insert_role(gateway, broken["id"], "Owner", FULL)
        insert_role(gateway, broken["id"], "Owner", FULL)

        repaired, failed = repair_all(gateway)

        assert (repaired, failed) == (1, 0)
        live = [r for r in gateway.get_all(ROLES, broken["id"]) if not r.get("is_deleted")]
        assert sorted(r["name"] for r in live) == ["Member", "Owner"]
        assert gateway.count(ROLES, healthy.id) == 2

    def test_explicit_team_list(self, gateway):
        team = insert_bare_team(gateway)

        assert repair_all(gateway, [team["id"]]) == (1, 0)
        assert gateway.count(ROLES, team["id"]) == 2

    def test_failures_are_counted(self, gateway):
        team = insert_bare_team(gateway)
        gateway.fail("create", ROLES)

        assert repair_all(gateway, [team["id"]]) == (0, 1)


class TestMain:
    def test_exits_non_zero_on_failure(self, gateway, monkeypatch):
        team = insert_bare_team(gateway)
        gateway.fail("create", ROLES)
        monkeypatch.setattr(repair_default_roles, "get_service_gateway", lambda: gateway)

        with pytest.raises(SystemExit) as exc:
            repair_default_roles.main(["--team", team["id"]])

        assert exc.value.code == 1

    def test_clean_run(self, gateway, monkeypatch):
        insert_bare_team(gateway)
        monkeypatch.setattr(repair_default_roles, "get_service_gateway", lambda: gateway)

        repair_default_roles.main([])
