"""
Shared infrastructure for the sync pipelines: errors, pacing and job logging.
"""
