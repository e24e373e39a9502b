"""
Audit the board for lanes whose priorities are not exactly 1..N.

Reorders keep lanes dense, but rows written outside the API (manual SQL,
imports, an interrupted deploy) can leave gaps or duplicate ranks. This
script finds them and, with --execute, renumbers each broken lane while
keeping its current order.

Usage:
    python -m shiptivity.scripts.lane_audit            # Report only (dry run)
    python -m shiptivity.scripts.lane_audit --execute  # Renumber broken lanes
"""

import argparse

from shiptivity.clients.engine import LaneAuditEngine
from shiptivity.clients.service import ReorderService
from shiptivity.logging_config import get_logger

logger = get_logger(__name__)


def lane_audit(execute=False, service=None):
    """
    Scan every lane and optionally repair it.

    Args:
        execute: If True, renumber broken lanes (default: False for safety)
        service: ReorderService to use (defaults to one over the app session)

    Returns:
        dict with scan results
    """
    service = service or ReorderService()

    print("=" * 80)
    print("LANE AUDIT: Checking client priorities")
    print("=" * 80)
    mode = "DRY RUN (Preview Only)" if not execute else "LIVE MODE - WILL UPDATE DATABASE"
    print(f"\n[INFO] Mode: {mode}")

    snapshot = service.snapshot()
    report = LaneAuditEngine.find_lane_violations(snapshot)
    planned = LaneAuditEngine.compact_lanes(snapshot)
    print(f"[INFO] Scanned {len(snapshot)} clients")

    for status, problems in report["lanes"].items():
        print(f"\n[LANE] {status} ({problems['count']} clients)")
        if problems["duplicates"]:
            print(f"  duplicate priorities: {problems['duplicates']}")
        if problems["missing"]:
            print(f"  missing priorities: {problems['missing']}")
        if problems["out_of_range"]:
            print(f"  out-of-range client ids: {problems['out_of_range']}")

    if report["unknown_status"]:
        # These are left alone; their lane has to be fixed by hand
        print(f"\n[WARNING] Clients with unknown status: {report['unknown_status']}")

    if not report["lanes"]:
        print("\n[INFO] All lanes are ranked 1..N. Nothing to do.")

    result = {
        "clients_scanned": len(snapshot),
        "lanes": report["lanes"],
        "unknown_status": report["unknown_status"],
        "planned_updates": len(planned),
        "applied_updates": 0,
        "executed": execute,
    }

    if execute and planned:
        applied = service.repair_lanes()
        result["applied_updates"] = len(applied)
        logger.info("Lane repair applied", updates=len(applied))
        print(f"\n[INFO] Renumbered {len(applied)} clients")
    elif planned:
        print(f"\n[INFO] {len(planned)} clients would be renumbered. Use --execute to apply.")

    print("\n" + "=" * 80)
    return result


if __name__ == "__main__":
    from shiptivity import create_app

    parser = argparse.ArgumentParser(description="Audit and repair client lane priorities.")
    parser.add_argument("--execute", action="store_true", help="Renumber broken lanes")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        lane_audit(execute=args.execute)
