"""
Environment, database path and table name configuration for the boxscore sync.
"""

from .database_config import (
    get_database_path,
    get_environment,
    get_table_name,
    get_table_suffix,
)

__all__ = [
    'get_database_path',
    'get_environment',
    'get_table_name',
    'get_table_suffix',
]
