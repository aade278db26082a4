"""
Job Management Module for the boxscore sync pipeline.
Handles job logging for sync, backfill and reingest runs.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union
from uuid import uuid4

from config.database_config import get_database_path, get_environment
from database.db_utils import DatabaseConnection

logger = logging.getLogger(__name__)

JOB_STATUSES = ('running', 'completed', 'failed')


class SyncJobManager:
    """Manages job lifecycle rows in the shared job_log table."""

    def __init__(self, environment: str = None, db_path: Union[str, Path, None] = None):
        """
        Initialize job manager.

        Args:
            environment: 'production' or 'test'
            db_path: Optional explicit database path (defaults to the environment's database)
        """
        self.environment = get_environment(environment)
        self.db_path = Path(db_path) if db_path else get_database_path(self.environment)
        self.current_job_id = None
        self._ensure_table()

    def _ensure_table(self):
        with DatabaseConnection(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS job_log (
                    job_id TEXT PRIMARY KEY,
                    job_type TEXT NOT NULL,
                    environment TEXT NOT NULL,
                    status TEXT NOT NULL,
                    league_id INTEGER,
                    season INTEGER,
                    week_start INTEGER,
                    week_end INTEGER,
                    records_processed INTEGER DEFAULT 0,
                    records_inserted INTEGER DEFAULT 0,
                    error_message TEXT,
                    metadata TEXT,
                    start_time TEXT,
                    end_time TEXT
                )
            """)

    def start_job(self,
                  job_type: str,
                  league_id: int,
                  season: int,
                  week_start: Optional[int] = None,
                  week_end: Optional[int] = None,
                  metadata: Dict = None) -> str:
        """
        Start a new job and create job log entry.

        Args:
            job_type: Type of job (e.g., 'boxscore_sync', 'boxscore_backfill')
            league_id: ESPN league id
            season: Season year
            week_start: First week covered by the job
            week_end: Last week covered by the job
            metadata: Additional job metadata

        Returns:
            job_id: Unique job identifier
        """
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        job_id = f"{job_type}_{self.environment}_{timestamp}_{uuid4().hex[:8]}"

        with DatabaseConnection(self.db_path) as conn:
            conn.execute("""
                INSERT INTO job_log (
                    job_id, job_type, environment, status,
                    league_id, season, week_start, week_end,
                    start_time, metadata
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                job_id,
                job_type,
                self.environment,
                'running',
                league_id,
                season,
                week_start,
                week_end,
                datetime.now().isoformat(),
                json.dumps(metadata) if metadata else None
            ))

        self.current_job_id = job_id
        logger.info(f"Started job: {job_id}")
        return job_id

    def update_job(self,
                   job_id: str,
                   status: str = None,
                   records_processed: int = None,
                   records_inserted: int = None,
                   error_message: str = None) -> None:
        """
        Update job status and statistics.

        Args:
            job_id: Job identifier
            status: New status ('running', 'completed', 'failed')
            records_processed: Number of records processed
            records_inserted: Number of records written
            error_message: Error message if failed
        """
        if status and status not in JOB_STATUSES:
            raise ValueError(f"Unknown job status: {status}")

        updates = []
        params = []

        if status:
            updates.append("status = ?")
            params.append(status)

        if records_processed is not None:
            updates.append("records_processed = ?")
            params.append(records_processed)

        if records_inserted is not None:
            updates.append("records_inserted = ?")
            params.append(records_inserted)

        if error_message:
            updates.append("error_message = ?")
            params.append(error_message)

        if status in ('completed', 'failed'):
            updates.append("end_time = ?")
            params.append(datetime.now().isoformat())

        if not updates:
            return

        params.append(job_id)
        with DatabaseConnection(self.db_path) as conn:
            conn.execute(f"UPDATE job_log SET {', '.join(updates)} WHERE job_id = ?", params)

        logger.info(f"Updated job {job_id}: status={status}")

    def get_job_status(self, job_id: str) -> Optional[Dict]:
        """
        Get current job status and statistics.

        Args:
            job_id: Job identifier

        Returns:
            Dictionary with job information, or None if the job is unknown
        """
        with DatabaseConnection(self.db_path) as conn:
            row = conn.execute("""
                SELECT
                    job_id, job_type, environment, status,
                    league_id, season, week_start, week_end,
                    records_processed, records_inserted,
                    error_message, metadata, start_time, end_time
                FROM job_log
                WHERE job_id = ?
            """, (job_id,)).fetchone()

        if not row:
            return None

        return {
            'job_id': row[0],
            'job_type': row[1],
            'environment': row[2],
            'status': row[3],
            'league_id': row[4],
            'season': row[5],
            'week_start': row[6],
            'week_end': row[7],
            'records_processed': row[8],
            'records_inserted': row[9],
            'error_message': row[10],
            'metadata': json.loads(row[11]) if row[11] else {},
            'start_time': row[12],
            'end_time': row[13],
        }

    def get_recent_jobs(self, job_type: str = None, limit: int = 10) -> List[Dict]:
        """Most recent jobs first, optionally filtered by type."""
        query = "SELECT job_id FROM job_log"
        params = []
        if job_type:
            query += " WHERE job_type = ?"
            params.append(job_type)
        query += " ORDER BY start_time DESC LIMIT ?"
        params.append(limit)

        with DatabaseConnection(self.db_path) as conn:
            job_ids = [row[0] for row in conn.execute(query, params).fetchall()]

        return [self.get_job_status(job_id) for job_id in job_ids]
