"""
Boxscore Sync Service

Sequences fetch, normalize and write for one week, and loops over weeks for
season backfills and corrective re-ingestion. Every public entry point returns
a JSON-serializable dict; errors are reported as data, never raised.
"""

import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Callable, Dict, List, Optional

from auth.credential_manager import ESPNCredentials
from data_pipeline.common.coercion import coerce_int
from data_pipeline.common.errors import (
    BoxscoreSyncError,
    ConfigurationError,
    EmptyUpstreamDataError,
    WriteError,
)
from data_pipeline.common.job_manager import SyncJobManager
from data_pipeline.common.rate_limiter import RateLimiter
from data_pipeline.weekly_boxscores.config import (
    BACKFILL_REQUESTS_PER_SECOND,
    DEFAULT_MAX_WEEKS,
    EMPTY_TEAMS_MESSAGE,
    MATCHUPS,
    MAX_BACKFILL_WORKERS,
    NO_BOXSCORES_MESSAGE,
    PLAYER_LINES,
    TEAM_TOTALS,
)
from data_pipeline.weekly_boxscores.normalizer import build_boxscores
from data_pipeline.weekly_boxscores.source_adapter import ESPNSourceAdapter
from data_pipeline.weekly_boxscores.upsert_writer import UpsertWriter

logger = logging.getLogger(__name__)


class SyncState(Enum):
    NOT_STARTED = 'not_started'
    FETCHING = 'fetching'
    NORMALIZING = 'normalizing'
    WRITING = 'writing'
    DONE = 'done'
    FAILED = 'failed'


class BoxscoreSyncService:
    """Syncs weekly boxscores for one ESPN league into the local datastore."""

    def __init__(self,
                 league_id: int,
                 credential_provider: Callable[[], ESPNCredentials],
                 source_adapter: Optional[ESPNSourceAdapter] = None,
                 writer: Optional[UpsertWriter] = None,
                 rate_limiter: Optional[RateLimiter] = None,
                 job_manager: Optional[SyncJobManager] = None,
                 environment: str = None):
        """
        Initialize the service.

        Args:
            league_id: ESPN league id
            credential_provider: Zero-argument callable returning ESPNCredentials
            source_adapter: Upstream reader (defaults to ESPNSourceAdapter)
            writer: Datastore writer (defaults to UpsertWriter for `environment`)
            rate_limiter: Paces week syncs inside backfill/reingest loops
                (defaults to BACKFILL_REQUESTS_PER_SECOND; pass NoopRateLimiter to disable)
            job_manager: Optional job log; None disables job logging
            environment: 'production' or 'test', used for the default writer
        """
        self.league_id = league_id
        self.credential_provider = credential_provider
        self.source_adapter = source_adapter or ESPNSourceAdapter()
        self.writer = writer or UpsertWriter(environment=environment)
        self.rate_limiter = rate_limiter or RateLimiter(BACKFILL_REQUESTS_PER_SECOND)
        self.job_manager = job_manager

    def _log_state(self, state: SyncState, season, week):
        logger.info(f"[{season} wk {week}] {state.value}")

    def _run_week(self, season, week) -> Dict:
        state = SyncState.NOT_STARTED
        try:
            season = coerce_int('season', season)
            week = coerce_int('week', week, allow_none=True)
            league_id = coerce_int('league_id', self.league_id)

            credentials = self.credential_provider()

            state = SyncState.FETCHING
            self._log_state(state, season, week)
            raw = self.source_adapter.fetch_week_raw(league_id, season, week, credentials)
            week = raw.week

            if not raw.teams:
                raise EmptyUpstreamDataError(EMPTY_TEAMS_MESSAGE)

            state = SyncState.NORMALIZING
            self._log_state(state, season, week)
            boxscores = build_boxscores(raw.teams, raw.matchups, raw.members)

            if not boxscores:
                logger.info(f"[{season} wk {week}] {NO_BOXSCORES_MESSAGE}")
                return {
                    'success': True,
                    'season': season,
                    'week': week,
                    'ingested': 0,
                    'player_lines': 0,
                    'team_totals': 0,
                    'matchups': 0,
                    'collections': {},
                    'message': NO_BOXSCORES_MESSAGE,
                }

            state = SyncState.WRITING
            self._log_state(state, season, week)
            write_result = self.writer.write(boxscores, league_id, season, week)

            result = {
                'success': write_result.success,
                'season': season,
                'week': week,
                'ingested': len(boxscores),
                'player_lines': write_result.written(PLAYER_LINES),
                'team_totals': write_result.written(TEAM_TOTALS),
                'matchups': write_result.written(MATCHUPS),
                'collections': write_result.to_dict(),
            }

            if not write_result.success:
                error = WriteError(
                    f"Upsert failed for {', '.join(write_result.failed_collections)}",
                    failed_collections=write_result.failed_collections
                )
                logger.error(f"[{season} wk {week}] {error}")
                result.update({
                    'error': str(error),
                    'error_type': type(error).__name__,
                    'stage': state.value,
                })
                return result

            self._log_state(SyncState.DONE, season, week)
            return result

        except BoxscoreSyncError as e:
            logger.error(f"[{season} wk {week}] {type(e).__name__} during {state.value}: {e}")
            return self._failure(e, state, season, week)
        except Exception as e:
            logger.exception(f"[{season} wk {week}] Unexpected error during {state.value}")
            return self._failure(e, state, season, week)

    @staticmethod
    def _failure(error: Exception, state: SyncState, season, week) -> Dict:
        return {
            'success': False,
            'error': str(error),
            'error_type': type(error).__name__,
            'stage': state.value,
            'season': season,
            'week': week,
        }

    def _start_job(self, job_type: str, season, week_start=None, week_end=None) -> Optional[str]:
        if not self.job_manager:
            return None
        try:
            return self.job_manager.start_job(
                job_type, self.league_id, season, week_start=week_start, week_end=week_end)
        except sqlite3.Error as e:
            logger.warning(f"Could not record job start: {e}")
            return None

    def _finish_job(self, job_id: Optional[str], results: List[Dict]):
        if not job_id:
            return
        failures = [r for r in results if not r.get('success')]
        try:
            self.job_manager.update_job(
                job_id,
                status='failed' if failures else 'completed',
                records_processed=sum(r.get('ingested', 0) for r in results),
                records_inserted=sum(r.get('player_lines', 0) for r in results),
                error_message='; '.join(
                    f"week {r.get('week')}: {r.get('error')}" for r in failures) or None
            )
        except sqlite3.Error as e:
            logger.warning(f"Could not record job completion for {job_id}: {e}")

    def sync_week(self, season, week=None) -> Dict:
        """
        Fetch, normalize and write one week.

        Args:
            season: Season year
            week: Scoring period; None uses the league's current period

        Returns:
            {success, season, week, ingested, player_lines, team_totals, matchups, collections}
            or {success: False, error, error_type, stage, season, week}
        """
        job_id = self._start_job('boxscore_sync', season, week, week)
        result = self._run_week(season, week)
        self._finish_job(job_id, [result])
        return result

    def _aggregate(self, season, weeks: List[int], results: List[Dict]) -> Dict:
        succeeded = sum(1 for r in results if r.get('success'))
        return {
            'success': True,
            'season': season,
            'total_weeks': len(weeks),
            'succeeded': succeeded,
            'failed': len(results) - succeeded,
            'results': results,
        }

    def _paced_run(self, season, week) -> Dict:
        self.rate_limiter.wait()
        return self._run_week(season, week)

    def backfill_season(self, season, max_weeks=DEFAULT_MAX_WEEKS, max_workers: int = 1) -> Dict:
        """
        Sync weeks 1..max_weeks of a season.

        A failing week is recorded and the loop moves on. With max_workers > 1 the
        weeks run on a bounded thread pool; pacing still goes through the rate limiter.

        Returns:
            {success, season, total_weeks, succeeded, failed, results}
        """
        try:
            season = coerce_int('season', season)
            max_weeks = coerce_int('max_weeks', max_weeks)
            max_workers = coerce_int('max_workers', max_workers)
        except ConfigurationError as e:
            logger.error(f"Backfill rejected: {e}")
            return self._failure(e, SyncState.NOT_STARTED, season, None)

        weeks = list(range(1, max_weeks + 1))
        max_workers = max(1, min(max_workers, MAX_BACKFILL_WORKERS))
        logger.info(f"Backfilling season {season}, weeks 1-{max_weeks} with {max_workers} worker(s)")

        job_id = self._start_job('boxscore_backfill', season, 1, max_weeks)

        if max_workers == 1:
            results = []
            for week in weeks:
                result = self._paced_run(season, week)
                results.append(result)
                logger.info(
                    f"Week {week}/{max_weeks}: {'ok' if result['success'] else 'failed'}"
                )
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                results = list(executor.map(lambda w: self._paced_run(season, w), weeks))
            results.sort(key=lambda r: r.get('week') or 0)

        self._finish_job(job_id, results)
        summary = self._aggregate(season, weeks, results)
        logger.info(
            f"Backfill complete: {summary['succeeded']} succeeded, {summary['failed']} failed"
        )
        return summary

    def reingest_recent(self, season, current_week) -> Dict:
        """
        Re-sync the current and previous week to pick up late stat corrections.

        Non-positive weeks are dropped, so week 1 re-ingests only itself.

        Returns:
            {success, season, total_weeks, succeeded, failed, results, reingested}
        """
        try:
            season = coerce_int('season', season)
            current_week = coerce_int('current_week', current_week)
        except ConfigurationError as e:
            logger.error(f"Reingest rejected: {e}")
            return self._failure(e, SyncState.NOT_STARTED, season, current_week)

        weeks = [w for w in (current_week, current_week - 1) if w > 0]
        logger.info(f"Re-ingesting season {season} weeks {weeks}")

        job_id = self._start_job('boxscore_reingest', season,
                                 min(weeks) if weeks else None, max(weeks) if weeks else None)
        results = [self._paced_run(season, week) for week in weeks]
        self._finish_job(job_id, results)

        summary = self._aggregate(season, weeks, results)
        summary['reingested'] = weeks
        return summary


def create_service(environment: str = None,
                   league_id: Optional[int] = None,
                   requests_per_second: float = BACKFILL_REQUESTS_PER_SECOND,
                   with_job_log: bool = True) -> BoxscoreSyncService:
    """
    Wire a service from the environment: league id and cookies from .env,
    the environment's database, and the pacing rate for week loops.

    Raises:
        ConfigurationError: If no league id is configured
    """
    from auth.config import LEAGUE_ID_ENV, get_league_id
    from auth.credential_manager import ESPNCredentialManager

    league_id = league_id if league_id is not None else get_league_id()
    if league_id is None:
        raise ConfigurationError(f"ESPN league id not configured. Set {LEAGUE_ID_ENV} in .env")

    return BoxscoreSyncService(
        league_id=league_id,
        credential_provider=ESPNCredentialManager(),
        writer=UpsertWriter(environment=environment),
        rate_limiter=RateLimiter(requests_per_second),
        job_manager=SyncJobManager(environment=environment) if with_job_log else None,
        environment=environment,
    )
