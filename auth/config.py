"""
Authentication configuration for the ESPN fantasy API.

Values are read from the environment, with a local .env file loaded first.
Nothing here raises at import time; validation happens in the credential manager.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from the project .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

# ---- COOKIE CONFIGURATION ----
ESPN_S2_ENV = 'ESPN_S2_COOKIE'
ESPN_SWID_ENV = 'ESPN_SWID_COOKIE'
LEAGUE_ID_ENV = 'ESPN_LEAGUE_ID'

# Local fallback for development machines
COOKIE_FILE = Path(__file__).parent / 'espn_cookies.json'


def get_league_id():
    """
    Get the configured ESPN league id.

    Returns:
        int or None: League id from ESPN_LEAGUE_ID, None if unset or not numeric
    """
    raw = os.getenv(LEAGUE_ID_ENV)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


__all__ = [
    'ESPN_S2_ENV', 'ESPN_SWID_ENV', 'LEAGUE_ID_ENV',
    'COOKIE_FILE', 'get_league_id'
]
