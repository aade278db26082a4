"""
SQLite connection and transaction helpers.
"""
