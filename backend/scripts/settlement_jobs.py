#!/usr/bin/env python3
"""
Settlement scheduled jobs

Jobs:
- init-db          Create settlement tables if missing
- release-matured  Flip pending earnings past their holding period to available
- payout-batch     Create payouts from eligible earnings (needs auto payouts enabled)

Usage:
    python3 settlement_jobs.py payout-batch [--date 2026-03-02] [--verbose]
    python3 settlement_jobs.py release-matured
    python3 settlement_jobs.py init-db

Author: TM3
Date: 2026-03-02
"""
import os
import sys
import argparse
import logging
from datetime import date

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Load environment variables from .env file (override system vars)
from dotenv import load_dotenv
load_dotenv(override=True)

from settlement.core.database import init_db
from settlement.core.errors import SettlementError
from settlement.core.logging_config import configure_logging
from settlement.services.earnings_ledger_service import EarningsLedgerService
from settlement.services.payout_scheduler import PayoutScheduler

logger = logging.getLogger("settlement.jobs")


def main():
    parser = argparse.ArgumentParser(description="Run settlement scheduled jobs")
    parser.add_argument("job", choices=["init-db", "release-matured", "payout-batch"])
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Reference date (YYYY-MM-DD), defaults to today (UTC)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging"
    )
    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else None)

    try:
        if args.job == "init-db":
            init_db()
            logger.info("Settlement tables ready")

        elif args.job == "release-matured":
            released = EarningsLedgerService().release_matured(args.date)
            print(f"Released {released} earnings record(s)")

        elif args.job == "payout-batch":
            result = PayoutScheduler().run_batch(args.date)
            if not result.enabled:
                print("Auto payouts disabled - nothing to do")
                return
            print(
                f"Created {len(result.payouts)} payout(s) totalling {result.total_amount}; "
                f"{len(result.below_minimum)} below minimum, {len(result.conflicts)} conflict(s), "
                f"{len(result.errors)} error(s)"
            )
            if result.errors:
                sys.exit(1)

    except SettlementError as e:
        logger.error(f"Job {args.job} failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
