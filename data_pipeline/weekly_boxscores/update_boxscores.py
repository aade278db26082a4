#!/usr/bin/env python
"""
Update Weekly Boxscores - Incremental Weekly Updates

Syncs one week (the league's current week by default) and runs the data
quality checks on what was written. Designed for scheduled runs during the
season.

Usage:
    # Sync the league's current week
    python update_boxscores.py

    # Sync a specific week
    python update_boxscores.py --season 2025 --week 5

    # Re-ingest the current and previous week for stat corrections
    python update_boxscores.py --reingest --week 6

    # Only report data freshness
    python update_boxscores.py --health-check

    # Test environment
    python update_boxscores.py --environment test
"""

import argparse
import json
import logging
import sys
from datetime import datetime

from data_pipeline.common.errors import BoxscoreSyncError
from data_pipeline.weekly_boxscores import health_check
from data_pipeline.weekly_boxscores.config import LOG_FORMAT
from data_pipeline.weekly_boxscores.data_quality_check import BoxscoreDataQualityChecker
from data_pipeline.weekly_boxscores.sync_service import create_service

logger = logging.getLogger(__name__)


def default_season(today=None):
    """NFL seasons run September to February; January and February belong to the prior year."""
    today = today or datetime.now()
    return today.year if today.month >= 3 else today.year - 1


def _run_quality_check(environment, league_id, result):
    checker = BoxscoreDataQualityChecker(environment=environment)
    results = checker.run_checks(league_id, result['season'], result['week'])
    print(checker.generate_report(results))
    return results['passed']


def main():
    """Main entry point for the update script."""
    parser = argparse.ArgumentParser(
        description='Sync weekly boxscores from ESPN',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('--season', type=int, default=default_season(),
                        help='Season year (default: current season)')
    parser.add_argument('--week', type=int,
                        help="Week to sync (default: the league's current week)")
    parser.add_argument('--reingest', action='store_true',
                        help='Re-sync --week and the week before it')

    parser.add_argument('--environment', choices=['production', 'test'], default='production',
                        help='Database environment (default: production)')
    parser.add_argument('--skip-quality-check', action='store_true',
                        help='Do not run data quality checks after the sync')
    parser.add_argument('--health-check', action='store_true',
                        help='Print data freshness and exit')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT
    )

    if args.health_check:
        status = health_check(args.environment)
        print(json.dumps(status, indent=2))
        return 0 if status['status'] != 'error' else 1

    if args.reingest and args.week is None:
        parser.error("--reingest requires --week")

    try:
        service = create_service(environment=args.environment)
    except BoxscoreSyncError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    if args.reingest:
        summary = service.reingest_recent(args.season, args.week)
        if 'results' not in summary:
            logger.error(f"Reingest failed: {summary.get('error')}")
            return 1
        logger.info(f"Re-ingested weeks {summary['reingested']}: "
                    f"{summary['succeeded']} succeeded, {summary['failed']} failed")
        results = summary['results']
    else:
        results = [service.sync_week(args.season, args.week)]

    exit_code = 0
    for result in results:
        if not result['success']:
            logger.error(f"Week {result.get('week')} failed at {result.get('stage')}: {result.get('error')}")
            exit_code = 1
            continue

        if 'message' in result:
            logger.info(result['message'])
            continue

        logger.info(f"Week {result['week']} complete: {result['matchups']} matchups, "
                    f"{result['player_lines']} player lines, {result['team_totals']} team totals")

        if not args.skip_quality_check:
            if not _run_quality_check(args.environment, service.league_id, result):
                exit_code = 1

    return exit_code


if __name__ == '__main__':
    sys.exit(main())
