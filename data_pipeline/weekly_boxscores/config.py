"""
Configuration settings for the weekly boxscore sync pipeline.

This module provides configuration constants and helper functions
for fetching, normalizing and writing weekly boxscores.
"""

from config.database_config import get_table_name

# API Configuration
BASE_LEAGUE_URL = (
    'https://lm-api-reads.fantasy.espn.com/apis/v3/games/ffl/seasons/{season}'
    '/segments/0/leagues/{league_id}'
)
USER_AGENT = 'fantasyapp/1.0'
REQUEST_TIMEOUT = 30  # Seconds, per request
FETCH_WORKERS = 3  # matchup, roster and member views

# Views requested from the league endpoint
STATUS_VIEWS = ('mSettings', 'mStatus')
MATCHUP_VIEWS = ('mMatchupScore', 'mMatchup')
ROSTER_VIEWS = ('mRoster',)
MEMBER_VIEWS = ('mSettings', 'mMembers')

# Stat record encoding (must match the upstream API exactly)
WEEKLY_SPLIT = 1
SOURCE_ACTUAL = 0
SOURCE_PROJECTED = 1

# Backfill Configuration
DEFAULT_MAX_WEEKS = 18
BACKFILL_REQUESTS_PER_SECOND = 1.0  # One week pipeline per second
MAX_BACKFILL_WORKERS = 4

# Default values for missing data
TEAM_NAME_PLACEHOLDER = 'Team {team_id}'
NO_BOXSCORES_MESSAGE = 'No boxscore data available for this week'
EMPTY_TEAMS_MESSAGE = 'ESPN returned 0 teams; check cookies and league privacy settings'

# Matchup winner codes from the schedule view
WINNER_CODES = {
    'HOME': 'home',
    'AWAY': 'away',
    'TIE': 'tie',
}

# Logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Logical collections, in write order
PLAYERS = 'fantasy_players'
TEAMS = 'fantasy_teams'
MATCHUPS = 'matchups'
PLAYER_LINES = 'weekly_player_lines'
TEAM_TOTALS = 'weekly_team_totals'
COLLECTIONS = (PLAYERS, TEAMS, MATCHUPS, PLAYER_LINES, TEAM_TOTALS)


def get_boxscore_table_names(environment='production'):
    """
    Get the table name for every collection in the specified environment.

    Args:
        environment: 'production' or 'test'

    Returns:
        dict: Collection name -> table name (e.g., 'matchups' -> 'matchups_test')
    """
    return {collection: get_table_name(collection, environment) for collection in COLLECTIONS}
