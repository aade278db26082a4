"""
Canned ESPN payloads shared by the boxscore tests.

The default league has one week-5 matchup: team 1 (home) starts player 100
and benches 101, team 2 (away) starts player 200. Team 1's roster uses the
playerPoolEntry shape, team 2's the direct player shape.
"""

from unittest.mock import Mock

from auth.credential_manager import ESPNCredentials

LEAGUE_ID = 123456
SEASON = 2025
WEEK = 5

CREDENTIALS = ESPNCredentials(espn_s2='AEB1234567890abcdef', swid='{ABCD-1234-EFGH-5678}')


def stat(period, source, applied_total, split=1):
    return {
        'scoringPeriodId': period,
        'statSplitTypeId': split,
        'statSourceId': source,
        'appliedTotal': applied_total,
    }


def roster_entry(player_id, name, slot_id, total=None, projected=None,
                 pool_shape=False, stats=None, position_id=1):
    player = {
        'id': player_id,
        'fullName': name,
        'defaultPositionId': position_id,
        'stats': stats or [],
    }
    entry = {'lineupSlotId': slot_id}
    if total is not None:
        entry['totalPoints'] = total
    if projected is not None:
        entry['projectedTotalPoints'] = projected
    if pool_shape:
        entry['playerPoolEntry'] = {'id': player_id, 'player': player}
    else:
        entry['player'] = player
    return entry


def team(team_id, entries, name=None, abbrev=None, owner='{OWNER-%d}', location=None, nickname=None):
    owner_id = owner % team_id if owner and '%d' in owner else owner
    data = {
        'id': team_id,
        'abbrev': abbrev or f"T{team_id}",
        'logo': f"https://example.com/logo{team_id}.png",
        'primaryOwner': owner_id,
        'owners': [owner_id] if owner_id else [],
        'roster': {'entries': entries},
    }
    if name is not None:
        data['name'] = name
    if location is not None:
        data['location'] = location
    if nickname is not None:
        data['nickname'] = nickname
    return data


def matchup(matchup_id, home_id, away_id, period=WEEK, winner='UNDECIDED'):
    return {
        'id': matchup_id,
        'matchupPeriodId': period,
        'home': {'teamId': home_id},
        'away': {'teamId': away_id},
        'winner': winner,
    }


def default_teams():
    return [
        team(1, [
            roster_entry(100, 'Josh Allen', 0, total=12.4, projected=10.1, pool_shape=True),
            roster_entry(101, 'Rhamondre Stevenson', 20, total=3, projected=2, pool_shape=True),
        ], name='Gridiron Gang'),
        team(2, [
            roster_entry(200, 'Justin Jefferson', 4, total=8, projected=9),
        ], name='Sunday Funday'),
    ]


def default_schedule():
    return [
        matchup(1, 1, 2, period=WEEK),
        matchup(7, 2, 1, period=WEEK - 1, winner='HOME'),
    ]


DEFAULT_MEMBERS = [
    {'id': '{OWNER-1}', 'displayName': 'gridiron_guru', 'firstName': 'Alex', 'lastName': 'Smith'},
    {'id': '{OWNER-2}', 'displayName': '', 'firstName': 'Jordan', 'lastName': 'Lee'},
]


def json_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


def make_espn_responder(schedule=None, teams=None, members=None, status=None):
    """
    Build a side_effect for requests.get that answers by requested view.
    """
    schedule = default_schedule() if schedule is None else schedule
    teams = default_teams() if teams is None else teams
    members = DEFAULT_MEMBERS if members is None else members
    status = status if status is not None else {'currentMatchupPeriod': WEEK, 'latestScoringPeriod': WEEK}

    def responder(url, params=None, **kwargs):
        views = {value for key, value in (params or []) if key == 'view'}
        if 'mMatchup' in views:
            return json_response({'schedule': schedule})
        if 'mRoster' in views:
            return json_response({'teams': teams})
        if 'mMembers' in views:
            return json_response({'members': members})
        if 'mStatus' in views:
            return json_response({'status': status})
        raise AssertionError(f"Unexpected views requested: {views}")

    return responder


class FakeClock:
    """Manual clock for rate limiter tests; sleeping advances time."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds
