"""
Data Quality Validation Module for Weekly Boxscores

Checks a synced league/season/week for internal consistency after the write:
team totals against their starters, player lines against the player table,
and matchup team ids against the team table.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd

from config.database_config import get_database_path, get_environment
from data_pipeline.weekly_boxscores.config import (
    MATCHUPS,
    PLAYER_LINES,
    PLAYERS,
    TEAM_TOTALS,
    TEAMS,
    get_boxscore_table_names,
)
from database.db_utils import DatabaseConnection

logger = logging.getLogger(__name__)

# Float tolerance when comparing stored totals to recomputed sums
TOTAL_TOLERANCE = 1e-6


class BoxscoreDataQualityChecker:
    """Validates stored boxscore rows for one week."""

    def __init__(self, environment: str = None, db_path: Union[str, Path, None] = None):
        self.environment = get_environment(environment)
        self.db_path = Path(db_path) if db_path else get_database_path(self.environment)
        self.tables = get_boxscore_table_names(self.environment)

    def _read(self, query: str, params: tuple) -> pd.DataFrame:
        with DatabaseConnection(self.db_path) as conn:
            return pd.read_sql_query(query, conn, params=params)

    def check_team_totals(self, league_id: int, season: int, week: int) -> Dict[str, Any]:
        """Stored team totals must equal the sum of that team's starter lines."""
        lines = self._read(f"""
            SELECT team_id, is_starter, points_actual, points_projected
            FROM {self.tables[PLAYER_LINES]}
            WHERE league_id = ? AND season = ? AND week = ?
        """, (league_id, season, week))
        totals = self._read(f"""
            SELECT team_id, total_actual, total_projected
            FROM {self.tables[TEAM_TOTALS]}
            WHERE league_id = ? AND season = ? AND week = ?
        """, (league_id, season, week))

        if totals.empty:
            return {'teams_checked': 0, 'mismatches': 0, 'passed': True, 'issues': []}

        starters = lines[lines['is_starter'] == 1]
        expected = (starters.groupby('team_id')[['points_actual', 'points_projected']]
                    .sum()
                    .reset_index())
        expected['team_id'] = expected['team_id'].astype('int64')
        totals['team_id'] = totals['team_id'].astype('int64')

        merged = totals.merge(expected, on='team_id', how='left').fillna(
            {'points_actual': 0.0, 'points_projected': 0.0})
        mismatched = merged[
            ((merged['total_actual'] - merged['points_actual']).abs() > TOTAL_TOLERANCE)
            | ((merged['total_projected'] - merged['points_projected']).abs() > TOTAL_TOLERANCE)
        ]

        issues = [
            f"Team {int(row.team_id)}: stored {row.total_actual} vs starters {row.points_actual}"
            for row in mismatched.itertuples()
        ]
        return {
            'teams_checked': len(totals),
            'mismatches': len(mismatched),
            'passed': mismatched.empty,
            'issues': issues,
        }

    def check_player_references(self, league_id: int, season: int, week: int) -> Dict[str, Any]:
        """Every player line must have a row in the player table."""
        orphans = self._read(f"""
            SELECT l.team_id, l.player_id
            FROM {self.tables[PLAYER_LINES]} l
            LEFT JOIN {self.tables[PLAYERS]} p ON p.player_id = l.player_id
            WHERE l.league_id = ? AND l.season = ? AND l.week = ? AND p.player_id IS NULL
        """, (league_id, season, week))

        return {
            'orphaned_lines': len(orphans),
            'passed': orphans.empty,
            'issues': [f"Player {int(pid)} has no player row" for pid in orphans['player_id'].unique()],
        }

    def check_matchup_teams(self, league_id: int, season: int, week: int) -> Dict[str, Any]:
        """Every non-null home/away team id must have a team row."""
        matchups = self._read(f"""
            SELECT matchup_id, home_team_id, away_team_id
            FROM {self.tables[MATCHUPS]}
            WHERE league_id = ? AND season = ? AND week = ?
        """, (league_id, season, week))
        teams = self._read(f"""
            SELECT team_id FROM {self.tables[TEAMS]}
            WHERE league_id = ? AND season = ?
        """, (league_id, season))

        referenced = pd.concat([matchups['home_team_id'], matchups['away_team_id']]).dropna()
        missing = sorted(set(referenced.astype(int)) - set(teams['team_id'].astype(int)))

        return {
            'matchups_checked': len(matchups),
            'missing_teams': len(missing),
            'passed': not missing,
            'issues': [f"Team {team_id} referenced by a matchup has no team row" for team_id in missing],
        }

    def run_checks(self, league_id: int, season: int, week: int) -> Dict[str, Any]:
        logger.info(f"Running data quality checks for league {league_id} {season} week {week}")
        checks = {
            'team_totals': self.check_team_totals(league_id, season, week),
            'player_references': self.check_player_references(league_id, season, week),
            'matchup_teams': self.check_matchup_teams(league_id, season, week),
        }
        passed = all(check['passed'] for check in checks.values())
        if not passed:
            logger.warning(f"Data quality issues found for {season} week {week}")

        return {
            'timestamp': datetime.now().isoformat(),
            'environment': self.environment,
            'league_id': league_id,
            'season': season,
            'week': week,
            'passed': passed,
            'checks': checks,
        }

    def generate_report(self, results: Optional[Dict[str, Any]] = None, league_id: int = None,
                        season: int = None, week: int = None) -> str:
        """
        Generate a human-readable validation report.

        Args:
            results: Output of run_checks (run now if None)
            league_id, season, week: Scope used when results is None

        Returns:
            Formatted report string
        """
        if results is None:
            results = self.run_checks(league_id, season, week)

        report = []
        report.append("=" * 60)
        report.append("BOXSCORE DATA QUALITY REPORT")
        report.append("=" * 60)
        report.append(f"League: {results['league_id']}  Season: {results['season']}  Week: {results['week']}")
        report.append(f"Overall: {'PASSED' if results['passed'] else 'FAILED'}")

        for name, check in results['checks'].items():
            report.append(f"\n{name.replace('_', ' ').title()}: {'ok' if check['passed'] else 'FAILED'}")
            for issue in check['issues']:
                report.append(f"  - {issue}")

        report.append("=" * 60)
        return "\n".join(report)
