"""
Weekly Boxscores Module for ESPN Fantasy Football League Analytics

This module syncs weekly matchups, rosters and player scoring from a private
ESPN league into the local datastore, one week at a time or a whole season.
"""

__version__ = "0.1.0"
__author__ = "League Analytics Team"

from .normalizer import build_boxscores
from .points import coalesce_actual, coalesce_projected
from .source_adapter import ESPNSourceAdapter
from .sync_service import BoxscoreSyncService, SyncState
from .upsert_writer import UpsertWriter, WriteBatch, WriteResult

__all__ = [
    "BoxscoreSyncService",
    "ESPNSourceAdapter",
    "SyncState",
    "UpsertWriter",
    "WriteBatch",
    "WriteResult",
    "build_boxscores",
    "coalesce_actual",
    "coalesce_projected",
]


def health_check(environment=None):
    """
    Check the health status of the Weekly Boxscores module.

    Returns:
        dict: Health status information including:
            - last_update: Timestamp of most recent player line
            - lag_hours: Hours since last update
            - record_count: Stored player lines
            - status: 'healthy', 'warning', or 'error'
    """
    from datetime import datetime
    import sqlite3
    from config.database_config import get_database_path
    from database.db_utils import DatabaseConnection
    from .config import PLAYER_LINES, get_boxscore_table_names

    try:
        db_path = get_database_path(environment)
        table_name = get_boxscore_table_names(environment)[PLAYER_LINES]

        with DatabaseConnection(db_path) as conn:
            last_update = conn.execute(f"SELECT MAX(last_updated) FROM {table_name}").fetchone()[0]
            record_count = conn.execute(f"SELECT COUNT(*) FROM {table_name}").fetchone()[0]

        current_time = datetime.now()

        if last_update:
            lag = current_time - datetime.fromisoformat(last_update)
            lag_hours = lag.total_seconds() / 3600

            # Weekly data; a week and a half without a sync is stale
            if lag_hours < 24 * 8:
                status = "healthy"
            elif lag_hours < 24 * 14:
                status = "warning"
            else:
                status = "error"
        else:
            lag_hours = None
            status = "error"

        return {
            "last_update": last_update,
            "lag_hours": round(lag_hours, 2) if lag_hours is not None else None,
            "record_count": record_count,
            "status": status,
            "timestamp": current_time.isoformat()
        }
    except sqlite3.Error as e:
        return {
            "status": "error",
            "error": str(e),
            "timestamp": datetime.now().isoformat()
        }
