"""
Central database configuration for the league boxscore sync.

This module provides a single source of truth for database paths and table names,
ensuring proper separation between test and production environments.

Environment Control:
    - Set DATA_ENV=test for test environment
    - Set DATA_ENV=production for production (default)
    - Set BOXSCORE_DB_PATH to point at a specific database file
    - Can also be controlled via function parameters
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Database file names
PRODUCTION_DB = "league_boxscores.db"
TEST_DB = "league_boxscores_test.db"

# Default environment
DEFAULT_ENVIRONMENT = "production"
VALID_ENVIRONMENTS = ('test', 'production')

# Base path to database directory
BASE_DIR = Path(__file__).parent.parent
DATABASE_DIR = BASE_DIR / "database"

# Tables shared by every environment
SHARED_TABLES = {'job_log'}


def get_environment(override=None):
    """
    Get the current environment setting.

    Args:
        override: Optional environment override ('test' or 'production')

    Returns:
        str: The environment ('test' or 'production')
    """
    if override:
        return override.lower()

    env = os.getenv('DATA_ENV', DEFAULT_ENVIRONMENT).lower()

    if env not in VALID_ENVIRONMENTS:
        logger.warning(f"Invalid DATA_ENV '{env}', using 'production'")
        return 'production'

    return env


def get_database_path(environment=None):
    """
    Get the appropriate database path based on environment.

    Args:
        environment: Optional environment override ('test' or 'production')

    Returns:
        Path: Full path to the database file
    """
    explicit_path = os.getenv('BOXSCORE_DB_PATH')
    if explicit_path:
        return Path(explicit_path)

    if get_environment(environment) == 'test':
        return DATABASE_DIR / TEST_DB
    return DATABASE_DIR / PRODUCTION_DB


def get_table_suffix(environment=None):
    """
    Get the table suffix for the environment.

    Args:
        environment: Optional environment override

    Returns:
        str: '_test' for the test environment, '' for production
    """
    return '_test' if get_environment(environment) == 'test' else ''


def get_table_name(base_name, environment=None):
    """
    Get the full table name for the environment.

    Args:
        base_name: Base table name (e.g., 'weekly_player_lines', 'matchups')
        environment: Optional environment override

    Returns:
        str: Full table name with environment suffix
    """
    if base_name in SHARED_TABLES:
        return base_name
    return f"{base_name}{get_table_suffix(environment)}"

