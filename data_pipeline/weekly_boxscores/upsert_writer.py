"""
Upsert Writer Module

Converts Boxscores into five batches of natural-key upserts and commits them
one collection at a time. Every statement is an INSERT ... ON CONFLICT DO
UPDATE, so re-running a week rewrites the same rows in place.
"""

import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from config.database_config import get_database_path, get_environment
from data_pipeline.weekly_boxscores.config import (
    COLLECTIONS,
    MATCHUPS,
    PLAYER_LINES,
    PLAYERS,
    TEAM_TOTALS,
    TEAMS,
    get_boxscore_table_names,
)
from data_pipeline.weekly_boxscores.models import Boxscore
from data_pipeline.weekly_boxscores.points import coalesce_actual, coalesce_projected
from data_pipeline.weekly_boxscores.slots import get_slot_label, is_starter
from database.db_utils import DatabaseConnection, transaction

logger = logging.getLogger(__name__)


SCHEMA = {
    PLAYERS: """
        CREATE TABLE IF NOT EXISTS {table} (
            player_id INTEGER PRIMARY KEY,
            full_name TEXT,
            default_position_id INTEGER,
            last_updated TEXT NOT NULL
        )
    """,
    TEAMS: """
        CREATE TABLE IF NOT EXISTS {table} (
            league_id INTEGER NOT NULL,
            season INTEGER NOT NULL,
            team_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            abbrev TEXT,
            logo TEXT,
            owner_id TEXT,
            owner_name TEXT,
            is_placeholder INTEGER NOT NULL DEFAULT 0,
            last_updated TEXT NOT NULL,
            UNIQUE(league_id, season, team_id)
        )
    """,
    MATCHUPS: """
        CREATE TABLE IF NOT EXISTS {table} (
            league_id INTEGER NOT NULL,
            season INTEGER NOT NULL,
            week INTEGER NOT NULL,
            matchup_id INTEGER NOT NULL,
            home_team_id INTEGER,
            away_team_id INTEGER,
            winner TEXT,
            last_updated TEXT NOT NULL,
            UNIQUE(league_id, season, week, matchup_id)
        )
    """,
    PLAYER_LINES: """
        CREATE TABLE IF NOT EXISTS {table} (
            league_id INTEGER NOT NULL,
            season INTEGER NOT NULL,
            week INTEGER NOT NULL,
            team_id INTEGER NOT NULL,
            player_id INTEGER NOT NULL,
            lineup_slot_id INTEGER,
            lineup_slot TEXT,
            is_starter INTEGER NOT NULL,
            points_actual REAL NOT NULL DEFAULT 0,
            points_projected REAL NOT NULL DEFAULT 0,
            default_position_id INTEGER,
            full_name TEXT,
            last_updated TEXT NOT NULL,
            UNIQUE(league_id, season, week, team_id, player_id)
        )
    """,
    TEAM_TOTALS: """
        CREATE TABLE IF NOT EXISTS {table} (
            league_id INTEGER NOT NULL,
            season INTEGER NOT NULL,
            week INTEGER NOT NULL,
            team_id INTEGER NOT NULL,
            total_actual REAL NOT NULL DEFAULT 0,
            total_projected REAL NOT NULL DEFAULT 0,
            starter_count INTEGER NOT NULL DEFAULT 0,
            last_updated TEXT NOT NULL,
            UNIQUE(league_id, season, week, team_id)
        )
    """,
}

UPSERT_SQL = {
    PLAYERS: """
        INSERT INTO {table} (player_id, full_name, default_position_id, last_updated)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(player_id) DO UPDATE SET
            full_name = COALESCE(excluded.full_name, full_name),
            default_position_id = COALESCE(excluded.default_position_id, default_position_id),
            last_updated = excluded.last_updated
    """,
    TEAMS: """
        INSERT INTO {table} (
            league_id, season, team_id, name, abbrev, logo,
            owner_id, owner_name, is_placeholder, last_updated
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(league_id, season, team_id) DO UPDATE SET
            name = CASE WHEN excluded.is_placeholder = 1 THEN name ELSE excluded.name END,
            abbrev = COALESCE(excluded.abbrev, abbrev),
            logo = COALESCE(excluded.logo, logo),
            owner_id = COALESCE(excluded.owner_id, owner_id),
            owner_name = COALESCE(excluded.owner_name, owner_name),
            is_placeholder = MIN(is_placeholder, excluded.is_placeholder),
            last_updated = excluded.last_updated
    """,
    MATCHUPS: """
        INSERT INTO {table} (
            league_id, season, week, matchup_id,
            home_team_id, away_team_id, winner, last_updated
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(league_id, season, week, matchup_id) DO UPDATE SET
            home_team_id = excluded.home_team_id,
            away_team_id = excluded.away_team_id,
            winner = excluded.winner,
            last_updated = excluded.last_updated
    """,
    PLAYER_LINES: """
        INSERT INTO {table} (
            league_id, season, week, team_id, player_id,
            lineup_slot_id, lineup_slot, is_starter, points_actual, points_projected,
            default_position_id, full_name, last_updated
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(league_id, season, week, team_id, player_id) DO UPDATE SET
            lineup_slot_id = excluded.lineup_slot_id,
            lineup_slot = excluded.lineup_slot,
            is_starter = excluded.is_starter,
            points_actual = excluded.points_actual,
            points_projected = excluded.points_projected,
            default_position_id = excluded.default_position_id,
            full_name = COALESCE(excluded.full_name, full_name),
            last_updated = excluded.last_updated
    """,
    TEAM_TOTALS: """
        INSERT INTO {table} (
            league_id, season, week, team_id,
            total_actual, total_projected, starter_count, last_updated
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(league_id, season, week, team_id) DO UPDATE SET
            total_actual = excluded.total_actual,
            total_projected = excluded.total_projected,
            starter_count = excluded.starter_count,
            last_updated = excluded.last_updated
    """,
}

INDEXES = {
    PLAYER_LINES: "CREATE INDEX IF NOT EXISTS idx_{table}_week ON {table}(league_id, season, week)",
    TEAM_TOTALS: "CREATE INDEX IF NOT EXISTS idx_{table}_week ON {table}(league_id, season, week)",
}


@dataclass
class WriteBatch:
    """Rows staged for one week, keyed by natural key within each collection."""
    league_id: int
    season: int
    week: int
    staged_at: str
    rows: Dict[str, Dict[tuple, tuple]] = field(
        default_factory=lambda: {collection: {} for collection in COLLECTIONS})

    def add(self, collection: str, key: tuple, row: tuple):
        # Later observations of the same key replace earlier ones
        self.rows[collection][key] = row

    def size(self, collection: str) -> int:
        return len(self.rows[collection])


@dataclass
class CollectionOutcome:
    """Result of committing one collection's batch."""
    collection: str
    attempted: int = 0
    written: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict:
        return {
            'success': self.success,
            'attempted': self.attempted,
            'written': self.written,
            'failed': self.failed,
            'errors': list(self.errors),
        }


@dataclass
class WriteResult:
    """Per-collection outcomes of one committed batch."""
    outcomes: Dict[str, CollectionOutcome] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return all(outcome.success for outcome in self.outcomes.values())

    @property
    def failed_collections(self) -> List[str]:
        return [name for name, outcome in self.outcomes.items() if not outcome.success]

    def written(self, collection: str) -> int:
        outcome = self.outcomes.get(collection)
        return outcome.written if outcome else 0

    def to_dict(self) -> Dict[str, Dict]:
        return {name: outcome.to_dict() for name, outcome in self.outcomes.items()}


class UpsertWriter:
    """Stages and commits weekly boxscore rows into SQLite."""

    def __init__(self, environment: str = None, db_path: Union[str, Path, None] = None):
        """
        Initialize the writer.

        Args:
            environment: 'production' or 'test' for database and table selection
            db_path: Optional explicit database path
        """
        self.environment = get_environment(environment)
        self.db_path = Path(db_path) if db_path else get_database_path(self.environment)
        self.tables = get_boxscore_table_names(self.environment)

        self.stats = {
            'batches_committed': 0,
            'rows_written': 0,
            'rows_failed': 0,
        }
        self._stats_lock = threading.Lock()

        self._init_database()

    def _init_database(self):
        """Ensure all five tables exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with DatabaseConnection(self.db_path) as conn:
            for collection in COLLECTIONS:
                table = self.tables[collection]
                conn.execute(SCHEMA[collection].format(table=table))
                if collection in INDEXES:
                    conn.execute(INDEXES[collection].format(table=table))

        logger.debug(f"Boxscore tables ready in {self.db_path}")

    def stage(self, boxscores: List[Boxscore], league_id: int, season: int, week: int) -> WriteBatch:
        """
        Build the five collections of rows for one week without touching the database.

        Args:
            boxscores: Joined boxscores for the week
            league_id: ESPN league id
            season: Season year
            week: Scoring period

        Returns:
            WriteBatch ready for commit()
        """
        now = datetime.now().isoformat()
        batch = WriteBatch(league_id=league_id, season=season, week=week, staged_at=now)

        for boxscore in boxscores:
            batch.add(MATCHUPS, (boxscore.matchup_id,), (
                league_id, season, week, boxscore.matchup_id,
                boxscore.home_team_id, boxscore.away_team_id, boxscore.winner, now
            ))

            for team_id, roster, metadata in boxscore.sides():
                if team_id is None:
                    continue

                if metadata is not None:
                    batch.add(TEAMS, (team_id,), (
                        league_id, season, team_id, metadata.name, metadata.abbrev,
                        metadata.logo, metadata.owner_id, metadata.owner_name,
                        int(metadata.is_placeholder), now
                    ))

                total_actual = 0
                total_projected = 0
                starter_count = 0

                for entry in roster:
                    if entry.player_id is None:
                        continue

                    actual = coalesce_actual(entry, week)
                    projected = coalesce_projected(entry, week)
                    starter = is_starter(entry.lineup_slot_id)

                    batch.add(PLAYERS, (entry.player_id,), (
                        entry.player_id, entry.full_name, entry.default_position_id, now
                    ))
                    batch.add(PLAYER_LINES, (team_id, entry.player_id), (
                        league_id, season, week, team_id, entry.player_id,
                        entry.lineup_slot_id, get_slot_label(entry.lineup_slot_id),
                        int(starter), actual, projected,
                        entry.default_position_id, entry.full_name, now
                    ))

                    if starter:
                        total_actual += actual
                        total_projected += projected
                        starter_count += 1

                batch.add(TEAM_TOTALS, (team_id,), (
                    league_id, season, week, team_id,
                    total_actual, total_projected, starter_count, now
                ))

        logger.debug(
            "Staged week %s: %s",
            week, ', '.join(f"{c}={batch.size(c)}" for c in COLLECTIONS)
        )
        return batch

    def _commit_collection(self, conn: sqlite3.Connection, collection: str,
                           rows: List[tuple]) -> CollectionOutcome:
        outcome = CollectionOutcome(collection=collection, attempted=len(rows))
        if not rows:
            return outcome

        sql = UPSERT_SQL[collection].format(table=self.tables[collection])
        try:
            with transaction(conn):
                for row in rows:
                    try:
                        conn.execute(sql, row)
                        outcome.written += 1
                    except sqlite3.Error as e:
                        outcome.failed += 1
                        outcome.errors.append(str(e))
                        logger.warning(f"Row rejected by {collection}: {e}")
        except sqlite3.Error as e:
            # The whole transaction was rolled back
            outcome.failed = outcome.attempted
            outcome.written = 0
            outcome.errors.append(str(e))
            logger.error(f"Batch upsert failed for {collection}: {e}")

        return outcome

    def commit(self, batch: WriteBatch) -> WriteResult:
        """
        Commit the staged collections in order, one transaction each.

        A failing collection does not stop the remaining ones; each outcome is
        reported independently.
        """
        result = WriteResult()

        with DatabaseConnection(self.db_path) as conn:
            for collection in COLLECTIONS:
                outcome = self._commit_collection(conn, collection, list(batch.rows[collection].values()))
                result.outcomes[collection] = outcome

                with self._stats_lock:
                    self.stats['rows_written'] += outcome.written
                    self.stats['rows_failed'] += outcome.failed
                logger.info(
                    f"{collection}: {outcome.written}/{outcome.attempted} rows written"
                    + (f", {outcome.failed} failed" if outcome.failed else "")
                )

        with self._stats_lock:
            self.stats['batches_committed'] += 1
        return result

    def write(self, boxscores: List[Boxscore], league_id: int, season: int, week: int) -> WriteResult:
        """Stage and commit one week."""
        return self.commit(self.stage(boxscores, league_id, season, week))

    def count_rows(self, collection: str, league_id: Optional[int] = None,
                   season: Optional[int] = None, week: Optional[int] = None) -> int:
        """Row count of a collection, optionally scoped (players ignore the scope)."""
        query = f"SELECT COUNT(*) FROM {self.tables[collection]}"
        conditions = []
        params = []
        if collection != PLAYERS:
            for column, value in (('league_id', league_id), ('season', season), ('week', week)):
                if value is None or (column == 'week' and collection == TEAMS):
                    continue
                conditions.append(f"{column} = ?")
                params.append(value)
        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        with DatabaseConnection(self.db_path) as conn:
            return conn.execute(query, params).fetchone()[0]
