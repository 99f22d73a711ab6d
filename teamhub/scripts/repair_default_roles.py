"""
Repair Default Roles Script
Walks every team and runs the default-role bootstrap: creates missing Owner or
Member roles, moves members off duplicate default roles, retires the
duplicates and resets default permissions.
Can be run manually or as part of a nightly job:

    python -m teamhub.scripts.repair_default_roles [--team TEAM_ID]
"""

import argparse
import sys
import logging

from teamhub.core.errors import TeamHubError
from teamhub.database.gateway import TEAMS, PersistenceGateway
from teamhub.database.supabase_client import get_service_gateway
from teamhub.modules.members.service import MembershipLedger
from teamhub.modules.roles.service import RoleCatalog

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def repair_team(catalog: RoleCatalog, team_id: str) -> bool:
    """Repair one team; returns True when anything was out of shape beforehand"""
    before = catalog.inspect_default_roles(team_id)
    needs_repair = before.has_duplicates or before.owner is None or before.member is None
    catalog.bootstrap_default_roles(team_id)
    if needs_repair:
        logger.info(
            f"Team {team_id}: repaired ({len(before.discard)} duplicate(s), "
            f"owner {'missing' if before.owner is None else 'ok'}, "
            f"member {'missing' if before.member is None else 'ok'})"
        )
    return needs_repair


def repair_all(gateway: PersistenceGateway, team_ids=None):
    catalog = RoleCatalog(gateway, MembershipLedger(gateway))
    if team_ids is None:
        team_ids = [team["id"] for team in gateway.get_all(TEAMS, None)]

    repaired = 0
    failed = 0
    for team_id in team_ids:
        try:
            if repair_team(catalog, team_id):
                repaired += 1
        except TeamHubError as e:
            failed += 1
            logger.error(f"Error repairing team {team_id}: {e.message}")

    logger.info(f"Default roles checked for {len(team_ids)} team(s): {repaired} repaired, {failed} failed")
    return repaired, failed


def main(argv=None):
    """Main function to repair default roles"""
    parser = argparse.ArgumentParser(description="Repair default Owner/Member roles")
    parser.add_argument("--team", action="append", dest="team_ids", help="Team ID (repeatable); defaults to all teams")
    args = parser.parse_args(argv)

    try:
        logger.info("Starting default role repair...")
        _, failed = repair_all(get_service_gateway(), args.team_ids)
    except Exception as e:
        logger.error(f"Error during repair: {e}")
        sys.exit(1)
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
