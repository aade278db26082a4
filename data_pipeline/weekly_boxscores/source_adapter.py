"""
Source Adapter Module

Fetches raw matchup, roster and member data for one league/season/week from the
ESPN fantasy API and converts it into canonical records.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from auth.credential_manager import ESPNCredentials, validate_credentials
from data_pipeline.common.coercion import coerce_int, to_int, to_number
from data_pipeline.common.errors import TransportError
from data_pipeline.weekly_boxscores.config import (
    BASE_LEAGUE_URL,
    FETCH_WORKERS,
    MATCHUP_VIEWS,
    MEMBER_VIEWS,
    REQUEST_TIMEOUT,
    ROSTER_VIEWS,
    STATUS_VIEWS,
    USER_AGENT,
    WINNER_CODES,
)
from data_pipeline.weekly_boxscores.models import (
    MatchupRecord,
    MemberRecord,
    RawWeek,
    RosterEntry,
    StatRecord,
    TeamRecord,
)
from data_pipeline.weekly_boxscores.slots import normalize_slot_id

logger = logging.getLogger(__name__)


class ESPNSourceAdapter:
    """Reads one week of league data from the ESPN fantasy API."""

    def __init__(self, timeout: float = REQUEST_TIMEOUT, max_workers: int = FETCH_WORKERS):
        """
        Initialize the adapter.

        Args:
            timeout: Per-request timeout in seconds
            max_workers: Concurrent fetches per week (one per view group)
        """
        self.timeout = timeout
        self.max_workers = max_workers
        self._stats_lock = threading.Lock()
        self.stats = {
            'requests_made': 0,
            'requests_failed': 0,
        }

    def _count(self, key: str):
        with self._stats_lock:
            self.stats[key] += 1

    @staticmethod
    def league_url(league_id: int, season: int) -> str:
        return BASE_LEAGUE_URL.format(season=season, league_id=league_id)

    def _make_api_request(self, url: str, params: Sequence[Tuple[str, Any]],
                          credentials: ESPNCredentials) -> Dict:
        """
        Make a single GET request and decode the JSON body.

        Raises:
            TransportError: On network failure, HTTP error status or undecodable body
        """
        headers = {'User-Agent': USER_AGENT, 'Accept': 'application/json'}
        self._count('requests_made')

        try:
            response = requests.get(
                url,
                params=list(params),
                headers=headers,
                cookies=credentials.cookies(),
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self._count('requests_failed')
            status_code = getattr(getattr(e, 'response', None), 'status_code', None)
            logger.warning(f"Request failed for {url} ({status_code}): {e}")
            raise TransportError(f"Request to ESPN failed: {e}", status_code=status_code, url=url) from e

        try:
            payload = response.json()
        except ValueError as e:
            self._count('requests_failed')
            raise TransportError(f"ESPN returned a non-JSON body: {e}",
                                 status_code=response.status_code, url=url) from e

        if not isinstance(payload, dict):
            self._count('requests_failed')
            raise TransportError("ESPN returned an unexpected payload shape",
                                 status_code=response.status_code, url=url)
        return payload

    def _fetch_views(self, league_id: int, season: int, views: Sequence[str],
                     credentials: ESPNCredentials, week: Optional[int] = None) -> Dict:
        params = []
        if week is not None:
            params.append(('scoringPeriodId', week))
        params.extend(('view', view) for view in views)
        return self._make_api_request(self.league_url(league_id, season), params, credentials)

    def discover_week(self, league_id: int, season: int, credentials: ESPNCredentials) -> int:
        """
        Ask the league for its current scoring period.

        Returns:
            status.currentMatchupPeriod, or status.latestScoringPeriod when absent
        """
        payload = self._fetch_views(league_id, season, STATUS_VIEWS, credentials)
        status = payload.get('status') or {}

        week = to_int(status.get('currentMatchupPeriod'))
        if week is None:
            week = to_int(status.get('latestScoringPeriod'))
        if week is None:
            raise TransportError("ESPN league status did not report a current scoring period")

        logger.info(f"Discovered current week {week} for league {league_id} season {season}")
        return week

    def fetch_week_raw(self, league_id: int, season: int, week: Optional[int],
                       credentials: ESPNCredentials) -> RawWeek:
        """
        Fetch matchups, teams with rosters, and members for one week.

        The three view groups are fetched concurrently; a failure in any of them
        fails the whole call.

        Args:
            league_id: ESPN league id
            season: Season year
            week: Scoring period, or None to use the league's current period
            credentials: espn_s2 / SWID cookies

        Returns:
            RawWeek with matchups already filtered to `week`
        """
        credentials = validate_credentials(credentials)
        coerce_int('league_id', league_id)

        if week is None:
            week = self.discover_week(league_id, season, credentials)

        logger.info(f"Fetching league {league_id} season {season} week {week}")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            matchup_future = executor.submit(
                self._fetch_views, league_id, season, MATCHUP_VIEWS, credentials, week)
            roster_future = executor.submit(
                self._fetch_views, league_id, season, ROSTER_VIEWS, credentials, week)
            member_future = executor.submit(
                self._fetch_views, league_id, season, MEMBER_VIEWS, credentials)

            matchup_data = matchup_future.result()
            roster_data = roster_future.result()
            member_data = member_future.result()

        raw = RawWeek(
            week=week,
            matchups=self.parse_matchups(matchup_data.get('schedule') or [], week),
            teams=self.parse_teams(roster_data.get('teams') or []),
            members=self.parse_members(member_data.get('members') or []),
        )
        logger.info(
            f"Fetched {len(raw.matchups)} matchups, {len(raw.teams)} teams, "
            f"{len(raw.members)} members for week {week}"
        )
        return raw

    @staticmethod
    def parse_matchups(schedule: List[Dict], week: int) -> List[MatchupRecord]:
        """Keep only schedule entries whose matchupPeriodId equals `week`."""
        matchups = []
        for item in schedule:
            if not isinstance(item, dict) or item.get('matchupPeriodId') != week:
                continue

            matchup_id = to_int(item.get('id'))
            if matchup_id is None:
                logger.warning(f"Skipping schedule entry without an id: {item}")
                continue

            home = item.get('home') or {}
            away = item.get('away') or {}
            winner = item.get('winner')
            matchups.append(MatchupRecord(
                matchup_id=matchup_id,
                matchup_period_id=item.get('matchupPeriodId'),
                home_team_id=to_int(home.get('teamId')),
                away_team_id=to_int(away.get('teamId')),
                winner=WINNER_CODES.get(winner.upper()) if isinstance(winner, str) else None,
            ))
        return matchups

    @staticmethod
    def parse_roster_entry(entry: Dict) -> RosterEntry:
        """
        Flatten a roster entry that carries either `player` or
        `playerPoolEntry.player` into a RosterEntry.
        """
        player = entry.get('player') or (entry.get('playerPoolEntry') or {}).get('player') or {}

        stats = []
        for stat in player.get('stats') or []:
            if not isinstance(stat, dict):
                continue
            stats.append(StatRecord(
                scoring_period_id=stat.get('scoringPeriodId'),
                stat_split_type_id=stat.get('statSplitTypeId'),
                stat_source_id=stat.get('statSourceId'),
                applied_total=to_number(stat.get('appliedTotal')),
            ))

        return RosterEntry(
            player_id=to_int(player.get('id')),
            full_name=player.get('fullName'),
            default_position_id=to_int(player.get('defaultPositionId')),
            lineup_slot_id=normalize_slot_id(entry),
            total_points=to_number(entry.get('totalPoints')),
            projected_total_points=to_number(entry.get('projectedTotalPoints')),
            stats=stats,
        )

    @classmethod
    def parse_teams(cls, teams: List[Dict]) -> List[TeamRecord]:
        records = []
        for team in teams:
            if not isinstance(team, dict):
                continue
            team_id = to_int(team.get('id'))
            if team_id is None:
                logger.warning(f"Skipping team without an id: {team.get('name')}")
                continue

            roster = None
            entries = (team.get('roster') or {}).get('entries')
            if isinstance(entries, list):
                roster = [cls.parse_roster_entry(e) for e in entries if isinstance(e, dict)]

            records.append(TeamRecord(
                team_id=team_id,
                name=team.get('name'),
                location=team.get('location'),
                nickname=team.get('nickname'),
                abbrev=team.get('abbrev'),
                logo=team.get('logo'),
                primary_owner=team.get('primaryOwner'),
                owners=list(team.get('owners') or []),
                roster=roster,
            ))
        return records

    @staticmethod
    def parse_members(members: List[Dict]) -> List[MemberRecord]:
        return [
            MemberRecord(
                member_id=m.get('id'),
                display_name=m.get('displayName'),
                first_name=m.get('firstName'),
                last_name=m.get('lastName'),
            )
            for m in members
            if isinstance(m, dict) and m.get('id')
        ]
