#!/usr/bin/env python
"""
Backfill Weekly Boxscores - Historical Season Collection

Syncs every week of a season. Weeks are paced by a token bucket and may run
on a small worker pool; a failed week is reported and the backfill continues.

Usage:
    # Backfill a full regular season plus playoffs
    python backfill_boxscores.py --season 2024

    # First 14 weeks, two workers, one week every two seconds
    python backfill_boxscores.py --season 2024 --max-weeks 14 --workers 2 --rate 0.5
"""

import argparse
import logging
import sys

from data_pipeline.common.errors import BoxscoreSyncError
from data_pipeline.weekly_boxscores.config import (
    BACKFILL_REQUESTS_PER_SECOND,
    DEFAULT_MAX_WEEKS,
    LOG_FORMAT,
    MAX_BACKFILL_WORKERS,
)
from data_pipeline.weekly_boxscores.sync_service import create_service

logger = logging.getLogger(__name__)


def main():
    """Main entry point for the backfill script."""
    parser = argparse.ArgumentParser(
        description='Backfill a season of weekly boxscores from ESPN',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('--season', type=int, required=True,
                        help='Season year to backfill')
    parser.add_argument('--max-weeks', type=int, default=DEFAULT_MAX_WEEKS,
                        help=f'Last week to sync (default: {DEFAULT_MAX_WEEKS})')
    parser.add_argument('--workers', type=int, default=1,
                        help=f'Concurrent weeks, at most {MAX_BACKFILL_WORKERS} (default: 1)')
    parser.add_argument('--rate', type=float, default=BACKFILL_REQUESTS_PER_SECOND,
                        help=f'Weeks started per second (default: {BACKFILL_REQUESTS_PER_SECOND})')
    parser.add_argument('--environment', choices=['production', 'test'], default='production',
                        help='Database environment (default: production)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT
    )

    if args.max_weeks < 1:
        parser.error("--max-weeks must be at least 1")
    if args.rate <= 0:
        parser.error("--rate must be positive")

    try:
        service = create_service(environment=args.environment, requests_per_second=args.rate)
    except BoxscoreSyncError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    summary = service.backfill_season(args.season, max_weeks=args.max_weeks, max_workers=args.workers)
    if 'results' not in summary:
        logger.error(f"Backfill failed: {summary.get('error')}")
        return 1

    print(f"\nSeason {summary['season']}: {summary['succeeded']}/{summary['total_weeks']} weeks synced")
    for result in summary['results']:
        if not result['success']:
            print(f"  Week {result.get('week')}: {result.get('error_type')} - {result.get('error')}")

    return 0 if summary['failed'] == 0 else 1


if __name__ == '__main__':
    sys.exit(main())
