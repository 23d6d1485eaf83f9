#!/usr/bin/env python3
# =============================================================================
# scripts/run_free_reset.py - One-off Free Account Reset
# =============================================================================
# Runs the free account reset synchronously from a shell, without Redis or
# the API. Handy for backfilling a missed night.
#
# Usage:
#   python scripts/run_free_reset.py                        # reset due accounts now
#   python scripts/run_free_reset.py --dry-run              # only list due accounts
#   python scripts/run_free_reset.py 2024-01-08T00:00:00Z   # evaluate at an instant
# =============================================================================

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

import logging

from core.services.free_reset_service import FreeAccountResetService
from lib.utils import parse_timestamp, utc_now

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def main(argv: list[str]) -> int:
    dry_run = "--dry-run" in argv
    instants = [arg for arg in argv if not arg.startswith("--")]

    try:
        now = parse_timestamp(instants[0]) if instants else utc_now()
    except ValueError:
        print(f"ERROR: not an ISO-8601 timestamp: {instants[0]}")
        return 2

    print(f"Evaluating free account resets at {now.isoformat()}")

    if dry_run:
        due = FreeAccountResetService.list_free_users_due_for_reset(now)
        print(f"{len(due)} free accounts due for reset")
        for user_id in due:
            print(f"  {user_id}")
        return 0

    result = FreeAccountResetService.batch_reset_accounts(now)
    print(f"Reset complete: {result.success} successful, {result.failed} failed")
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
