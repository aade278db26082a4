"""
Unit tests for joining matchups, teams and members into boxscores.
"""

import unittest

from data_pipeline.weekly_boxscores.models import MatchupRecord, MemberRecord, RosterEntry, TeamRecord
from data_pipeline.weekly_boxscores.normalizer import (
    build_boxscores,
    build_member_map,
    build_team_metadata_map,
    resolve_team_name,
)


class TestNormalizer(unittest.TestCase):
    """Test cases for build_boxscores and its lookup maps."""

    def setUp(self):
        self.members = [
            MemberRecord('{A}', display_name='alpha'),
            MemberRecord('{B}', display_name='', first_name='Bea', last_name='Jones'),
            MemberRecord('{C}'),
        ]
        self.teams = [
            TeamRecord(1, name='Alpha Dogs', abbrev='AD', primary_owner='{A}',
                       roster=[RosterEntry(100, 'Player One', lineup_slot_id=0)]),
            TeamRecord(2, location='Beta', nickname='Bandits', primary_owner='{B}', roster=None),
            TeamRecord(3, owners=['{C}']),
        ]

    def test_team_name_fallbacks(self):
        self.assertEqual(resolve_team_name(self.teams[0]), 'Alpha Dogs')
        self.assertEqual(resolve_team_name(self.teams[1]), 'Beta Bandits')
        self.assertEqual(resolve_team_name(self.teams[2]), 'Team 3')
        self.assertEqual(resolve_team_name(TeamRecord(4, nickname='Solo')), 'Solo')

    def test_owner_names(self):
        names = build_member_map(self.members)
        self.assertEqual(names['{A}'], 'alpha')
        self.assertEqual(names['{B}'], 'Bea Jones')
        self.assertIsNone(names['{C}'])

    def test_team_metadata(self):
        metadata = build_team_metadata_map(self.teams, build_member_map(self.members))

        self.assertEqual(metadata[1].owner_name, 'alpha')
        self.assertEqual(metadata[1].abbrev, 'AD')
        self.assertEqual(metadata[2].owner_name, 'Bea Jones')
        # No primary owner: first listed owner is used
        self.assertEqual(metadata[3].owner_id, '{C}')
        self.assertFalse(metadata[3].is_placeholder)

    def test_build_boxscores(self):
        matchups = [MatchupRecord(10, 5, 1, 2, winner='home')]
        boxscores = build_boxscores(self.teams, matchups, self.members)

        self.assertEqual(len(boxscores), 1)
        box = boxscores[0]
        self.assertEqual(box.matchup_id, 10)
        self.assertEqual([e.player_id for e in box.home_roster], [100])
        self.assertEqual(box.away_roster, [])
        self.assertEqual(box.home_team_metadata.name, 'Alpha Dogs')
        self.assertEqual(box.away_team_metadata.name, 'Beta Bandits')
        self.assertEqual(box.winner, 'home')

    def test_unknown_team_gets_placeholder(self):
        boxscores = build_boxscores(self.teams, [MatchupRecord(11, 5, 1, 99)], self.members)

        away = boxscores[0].away_team_metadata
        self.assertEqual(away.name, 'Team 99')
        self.assertTrue(away.is_placeholder)
        self.assertEqual(boxscores[0].away_roster, [])

    def test_missing_side(self):
        boxscores = build_boxscores(self.teams, [MatchupRecord(12, 5, 1, None)], self.members)

        self.assertIsNone(boxscores[0].away_team_metadata)
        self.assertEqual(boxscores[0].away_roster, [])

    def test_no_matchups(self):
        self.assertEqual(build_boxscores(self.teams, [], self.members), [])


if __name__ == '__main__':
    unittest.main()
