"""
Unit tests for the UpsertWriter class.
"""

import os
import sqlite3
import tempfile
import unittest

from data_pipeline.weekly_boxscores.config import (
    COLLECTIONS,
    MATCHUPS,
    PLAYER_LINES,
    PLAYERS,
    TEAM_TOTALS,
    TEAMS,
)
from data_pipeline.weekly_boxscores.models import Boxscore, RosterEntry, StatRecord, TeamMetadata
from data_pipeline.weekly_boxscores.normalizer import placeholder_metadata
from data_pipeline.weekly_boxscores.upsert_writer import UpsertWriter

LEAGUE_ID = 1
SEASON = 2025
WEEK = 5


def _metadata(team_id, name=None, abbrev=None):
    return TeamMetadata(team_id=team_id, name=name or f"Team Name {team_id}", abbrev=abbrev)


def _boxscore(home_roster, away_roster, home_id=10, away_id=20, matchup_id=1, winner=None,
              home_metadata=None, away_metadata=None):
    return Boxscore(
        matchup_id=matchup_id,
        home_team_id=home_id,
        away_team_id=away_id,
        home_roster=home_roster,
        away_roster=away_roster,
        home_team_metadata=home_metadata or (_metadata(home_id) if home_id is not None else None),
        away_team_metadata=away_metadata or (_metadata(away_id) if away_id is not None else None),
        winner=winner,
    )


class TestUpsertWriter(unittest.TestCase):
    """Test cases for UpsertWriter."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_db = tempfile.NamedTemporaryFile(suffix='.db', delete=False)
        self.temp_db.close()
        self.writer = UpsertWriter(environment='test', db_path=self.temp_db.name)

    def tearDown(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_db.name):
            os.unlink(self.temp_db.name)

    def _query(self, sql, params=()):
        conn = sqlite3.connect(self.temp_db.name)
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    def test_tables_use_test_suffix(self):
        tables = {row[0] for row in self._query("SELECT name FROM sqlite_master WHERE type = 'table'")}
        for collection in COLLECTIONS:
            self.assertIn(f"{collection}_test", tables)

    def test_stage_starter_only_totals(self):
        home = [
            RosterEntry(100, 'Starter', lineup_slot_id=0, total_points=12.4, projected_total_points=10.1),
            RosterEntry(101, 'Bench', lineup_slot_id=20, total_points=3, projected_total_points=2),
            RosterEntry(102, 'Injured', lineup_slot_id=21, total_points=5, projected_total_points=1),
            RosterEntry(103, 'Flex', lineup_slot_id=23, total_points=0,
                        stats=[StatRecord(WEEK, 1, 0, 4.5), StatRecord(WEEK, 1, 1, 6.0)]),
        ]
        batch = self.writer.stage([_boxscore(home, [])], LEAGUE_ID, SEASON, WEEK)

        totals = batch.rows[TEAM_TOTALS][(10,)]
        self.assertAlmostEqual(totals[4], 16.9)
        self.assertAlmostEqual(totals[5], 16.1)
        self.assertEqual(totals[6], 2)

        # Empty away roster still gets a zero totals row
        self.assertEqual(batch.rows[TEAM_TOTALS][(20,)][4:7], (0, 0, 0))

        self.assertEqual(batch.size(PLAYER_LINES), 4)
        self.assertEqual(batch.size(PLAYERS), 4)
        self.assertEqual(batch.size(TEAMS), 2)
        self.assertEqual(batch.size(MATCHUPS), 1)

    def test_player_lines_store_slot_labels(self):
        home = [
            RosterEntry(100, 'Starter', lineup_slot_id=0, total_points=1),
            RosterEntry(101, 'Bench', lineup_slot_id=20, total_points=1),
            RosterEntry(102, 'Unslotted', total_points=1),
        ]
        result = self.writer.write([_boxscore(home, [])], LEAGUE_ID, SEASON, WEEK)
        self.assertTrue(result.success)

        rows = self._query(
            "SELECT player_id, lineup_slot, is_starter FROM weekly_player_lines_test ORDER BY player_id")
        self.assertEqual(rows, [(100, 'QB', 1), (101, 'BENCH', 0), (102, None, 0)])

    def test_entries_without_player_id_are_skipped(self):
        home = [RosterEntry(None, lineup_slot_id=0, total_points=50),
                RosterEntry(100, lineup_slot_id=0, total_points=7)]
        batch = self.writer.stage([_boxscore(home, [])], LEAGUE_ID, SEASON, WEEK)

        self.assertEqual(batch.size(PLAYER_LINES), 1)
        self.assertEqual(batch.rows[TEAM_TOTALS][(10,)][4], 7)

    def test_side_without_team_id_is_skipped(self):
        away = [RosterEntry(200, lineup_slot_id=0, total_points=8)]
        batch = self.writer.stage([_boxscore([], away, away_id=None)], LEAGUE_ID, SEASON, WEEK)

        self.assertEqual(list(batch.rows[TEAM_TOTALS].keys()), [(10,)])
        self.assertEqual(list(batch.rows[TEAMS].keys()), [(10,)])
        self.assertEqual(batch.size(PLAYER_LINES), 0)
        self.assertEqual(batch.size(MATCHUPS), 1)

    def test_write_persists_rows(self):
        home = [RosterEntry(100, 'Starter', default_position_id=1, lineup_slot_id=0,
                            total_points=12.4, projected_total_points=10.1)]
        away = [RosterEntry(200, 'Other', lineup_slot_id=4, total_points=8, projected_total_points=9)]
        result = self.writer.write([_boxscore(home, away, winner='away')], LEAGUE_ID, SEASON, WEEK)

        self.assertTrue(result.success)
        self.assertEqual(result.written(PLAYER_LINES), 2)
        self.assertEqual(result.written(TEAM_TOTALS), 2)

        lines = self._query(
            "SELECT team_id, player_id, is_starter, points_actual, points_projected, full_name "
            "FROM weekly_player_lines_test ORDER BY player_id")
        self.assertEqual(lines, [(10, 100, 1, 12.4, 10.1, 'Starter'), (20, 200, 1, 8.0, 9.0, 'Other')])

        matchups = self._query("SELECT home_team_id, away_team_id, winner FROM matchups_test")
        self.assertEqual(matchups, [(10, 20, 'away')])
        self.assertEqual(self.writer.count_rows(TEAMS, LEAGUE_ID, SEASON, WEEK), 2)

    def test_natural_key_collapse(self):
        """Re-upserting the same line key updates it in place."""
        for points in (8.0, 9.5):
            home = [RosterEntry(100, 'Player', lineup_slot_id=0, total_points=points)]
            self.writer.write([_boxscore(home, [], home_id=10, away_id=None)], LEAGUE_ID, SEASON, WEEK)

        rows = self._query(
            "SELECT points_actual FROM weekly_player_lines_test "
            "WHERE league_id = 1 AND season = 2025 AND week = 5 AND team_id = 10 AND player_id = 100")
        self.assertEqual(rows, [(9.5,)])
        self.assertEqual(self._query("SELECT total_actual FROM weekly_team_totals_test"), [(9.5,)])
        self.assertEqual(self.writer.count_rows(PLAYERS), 1)

    def test_missing_names_do_not_erase_stored_values(self):
        self.writer.write([_boxscore(
            [RosterEntry(100, 'Josh Allen', lineup_slot_id=0)], [],
            away_id=None, home_metadata=_metadata(10, 'Real Name', abbrev='RN'))], LEAGUE_ID, SEASON, WEEK)

        # Later sync: player name missing, team only known as a placeholder
        self.writer.write([_boxscore(
            [RosterEntry(100, None, lineup_slot_id=0)], [],
            away_id=None, home_metadata=placeholder_metadata(10))], LEAGUE_ID, SEASON, WEEK)

        self.assertEqual(self._query("SELECT full_name FROM fantasy_players_test"), [('Josh Allen',)])
        self.assertEqual(self._query("SELECT full_name FROM weekly_player_lines_test"), [('Josh Allen',)])
        self.assertEqual(self._query("SELECT name, abbrev, is_placeholder FROM fantasy_teams_test"),
                         [('Real Name', 'RN', 0)])

    def test_placeholder_team_is_replaced_by_real_name(self):
        self.writer.write([_boxscore([], [], away_id=None, home_metadata=placeholder_metadata(10))],
                          LEAGUE_ID, SEASON, WEEK)
        self.writer.write([_boxscore([], [], away_id=None, home_metadata=_metadata(10, 'Named'))],
                          LEAGUE_ID, SEASON, WEEK)

        self.assertEqual(self._query("SELECT name, is_placeholder FROM fantasy_teams_test"), [('Named', 0)])

    def test_failing_row_does_not_block_batch(self):
        batch = self.writer.stage(
            [_boxscore([RosterEntry(100, lineup_slot_id=0, total_points=1)], [])], LEAGUE_ID, SEASON, WEEK)
        bad_row = (LEAGUE_ID, SEASON, WEEK, 10, None, 0, 'QB', 1, 0, 0, None, None, batch.staged_at)
        batch.add(PLAYER_LINES, (10, None), bad_row)

        result = self.writer.commit(batch)

        outcome = result.outcomes[PLAYER_LINES]
        self.assertEqual(outcome.attempted, 2)
        self.assertEqual(outcome.written, 1)
        self.assertEqual(outcome.failed, 1)
        self.assertFalse(result.success)
        self.assertEqual(result.failed_collections, [PLAYER_LINES])
        self.assertTrue(result.outcomes[TEAM_TOTALS].success)
        self.assertEqual(self.writer.stats['rows_failed'], 1)

    def test_failing_collection_does_not_block_others(self):
        conn = sqlite3.connect(self.temp_db.name)
        conn.execute("DROP TABLE matchups_test")
        conn.commit()
        conn.close()

        home = [RosterEntry(100, lineup_slot_id=0, total_points=1)]
        result = self.writer.write([_boxscore(home, [])], LEAGUE_ID, SEASON, WEEK)

        self.assertFalse(result.outcomes[MATCHUPS].success)
        self.assertEqual(result.outcomes[MATCHUPS].written, 0)
        for collection in (PLAYERS, TEAMS, PLAYER_LINES, TEAM_TOTALS):
            self.assertTrue(result.outcomes[collection].success, collection)
        self.assertEqual(self.writer.count_rows(PLAYER_LINES), 1)

    def test_empty_batch(self):
        result = self.writer.write([], LEAGUE_ID, SEASON, WEEK)
        self.assertTrue(result.success)
        self.assertEqual(sum(o.attempted for o in result.outcomes.values()), 0)


if __name__ == '__main__':
    unittest.main()
